# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Click-based CLI for pdfunicode.

This module provides the command-line interface for giving the form of a
PDF file a Unicode default font and filling in its text fields.
"""

# Standard Library
import logging
import sys
from pathlib import Path

# Third Party
import click
import pikepdf
from colorama import Fore, Style, init

# Local
from . import __version__
from .document import Document
from .exceptions import (
    AssetDecodeError,
    CapabilityNotRegisteredError,
    ConfigurationError,
    FontEmbeddingError,
    FontHandleError,
    FormFieldError,
)
from .forms import Form
from .migration import migrate_existing_fields
from .options import DocumentOptions, SaveOptions
from .utils import setup_logging

EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
EXIT_FILE_NOT_FOUND = 2
EXIT_PROVISIONING_FAILED = 3
EXIT_PERMISSION_ERROR = 5

OUTPUT_SUFFIX = "_unicode"

logger = logging.getLogger(__name__)


def print_success(msg: str) -> None:
    """Prints a success message in green.

    Args:
        msg: The message to output.
    """
    click.echo(f"{Fore.GREEN}✓{Style.RESET_ALL} {msg}")


def print_error(msg: str) -> None:
    """Prints an error message in red.

    Args:
        msg: The error message to output.
    """
    click.echo(f"{Fore.RED}✗ Error:{Style.RESET_ALL} {msg}", err=True)


def print_warning(msg: str) -> None:
    """Prints a warning in yellow."""
    click.echo(f"{Fore.YELLOW}⚠{Style.RESET_ALL} {msg}")


def generate_output_path(input_path: Path) -> Path:
    """Returns ``<stem>_unicode.pdf`` next to *input_path*."""
    return input_path.with_name(f"{input_path.stem}{OUTPUT_SUFFIX}.pdf")


def parse_field_assignments(assignments: tuple[str, ...]) -> dict[str, str]:
    """Parses ``NAME=VALUE`` pairs given with ``--field``.

    Raises:
        click.BadParameter: If a pair has no ``=`` or an empty name.
    """
    values: dict[str, str] = {}
    for assignment in assignments:
        name, sep, value = assignment.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(
                f"Expected NAME=VALUE, got {assignment!r}", param_hint="--field"
            )
        values[name.strip()] = value
    return values


def _print_fields(form: Form) -> None:
    fields = form.fields
    if not fields:
        click.echo("No form fields.")
        return
    for field in fields:
        own_font = field.font
        font_label = own_font.resource_name if own_font is not None else "(form default)"
        click.echo(f"{field.name}\t{field.field_type or '?'}\t{font_label}")


@click.command()
@click.argument("input_path", required=False, type=click.Path(exists=True, dir_okay=False))
@click.argument("output", required=False, type=click.Path(dir_okay=False))
@click.option(
    "--font",
    "font_path",
    type=click.Path(exists=True, dir_okay=False),
    help="TrueType/OpenType font to embed instead of the bundled font",
)
@click.option(
    "--field",
    "field_values",
    multiple=True,
    metavar="NAME=VALUE",
    help="Set a text field value (repeatable)",
)
@click.option(
    "--update-existing-fields",
    is_flag=True,
    help="Give existing fields without their own font the new font",
)
@click.option(
    "--no-appearances",
    is_flag=True,
    help="Let the viewer build field appearances (sets /NeedAppearances)",
)
@click.option(
    "--list-fields",
    is_flag=True,
    help="List form fields and exit",
)
@click.option(
    "-f",
    "--force",
    is_flag=True,
    help="Overwrite existing files",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    help="Only output errors",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Detailed output",
)
@click.version_option(version=__version__)
def main(
    input_path: str | None,
    output: str | None,
    font_path: str | None,
    field_values: tuple[str, ...],
    update_existing_fields: bool,
    no_appearances: bool,
    list_fields: bool,
    force: bool,
    quiet: bool,
    verbose: bool,
) -> None:
    """Provisions a Unicode font for the form of a PDF file.

    INPUT is the path to the input PDF.
    OUTPUT is optionally the path for the output PDF.
    """
    # Initialize colorama for Windows compatibility
    init()

    if input_path is None:
        click.echo(click.get_current_context().get_help())
        sys.exit(EXIT_GENERAL_ERROR)

    setup_logging(verbose=verbose, quiet=quiet)

    assignments = parse_field_assignments(field_values)
    input_path_obj = Path(input_path)

    try:
        if list_fields:
            with Document.open(input_path_obj) as document:
                _print_fields(document.get_form())
            exit_code = EXIT_SUCCESS
        else:
            exit_code = _process_file(
                input_path_obj,
                output,
                font_path,
                assignments,
                update_existing_fields=update_existing_fields,
                update_appearances=not no_appearances,
                force=force,
                quiet=quiet,
            )
    except FileNotFoundError as e:
        print_error(str(e))
        exit_code = EXIT_FILE_NOT_FOUND
    except PermissionError as e:
        print_error(f"Access denied: {e}")
        exit_code = EXIT_PERMISSION_ERROR
    except (
        CapabilityNotRegisteredError,
        AssetDecodeError,
        FontEmbeddingError,
        FontHandleError,
    ) as e:
        print_error(str(e))
        exit_code = EXIT_PROVISIONING_FAILED
    except (FormFieldError, ConfigurationError) as e:
        print_error(str(e))
        exit_code = EXIT_GENERAL_ERROR
    except pikepdf.PdfError as e:
        print_error(f"Cannot read PDF: {e}")
        exit_code = EXIT_GENERAL_ERROR
    except Exception as e:
        logger.exception("Unexpected error")
        print_error(f"Unexpected error: {e}")
        exit_code = EXIT_GENERAL_ERROR

    sys.exit(exit_code)


def _process_file(
    input_path: Path,
    output: str | None,
    font_path: str | None,
    assignments: dict[str, str],
    *,
    update_existing_fields: bool,
    update_appearances: bool,
    force: bool,
    quiet: bool,
) -> int:
    """Provisions the font, fills fields and saves a single file.

    Args:
        input_path: Path to the input PDF.
        output: Optional output path.
        font_path: Optional font file replacing the bundled font.
        assignments: Field values to set, by fully qualified name.
        update_existing_fields: Whether existing fields get the new font.
        update_appearances: Whether appearance streams are generated.
        force: Whether to overwrite an existing output file.
        quiet: Whether to only output errors.

    Returns:
        Exit code.
    """
    output_path = Path(output) if output else generate_output_path(input_path)
    if output_path.exists() and not force:
        print_error(
            f"Output file already exists: {output_path}. Use --force to overwrite."
        )
        return EXIT_GENERAL_ERROR

    font_data = Path(font_path).read_bytes() if font_path else None
    options = DocumentOptions(
        unicode_font_bytes=font_data,
        update_existing_fields=update_existing_fields and font_data is not None,
    )

    if not quiet:
        click.echo(f"Processing {input_path.name}...")

    with Document.open(input_path, options) as document:
        document.register_font_engine()
        if options.defers_provisioning:
            form = document.ensure_form_provisioned()
            handle = form.get_default_font()
        else:
            form = document.get_form()
            handle = form.provision_bundled_font()
            if update_existing_fields:
                migrate_existing_fields(form, handle)

        for name, value in assignments.items():
            field = form.get_text_field(name)
            field.set_text(value)
            field_font = field.effective_font
            missing = [ch for ch in value if not field_font.covers(ch)]
            if missing and not quiet:
                print_warning(
                    f"Field '{name}': font {field_font.base_font} has no glyph for "
                    f"{''.join(sorted(set(missing)))!r}"
                )

        document.save(
            output_path, SaveOptions(update_field_appearances=update_appearances)
        )

    if not quiet:
        print_success(
            f"Saved: {input_path.name} -> {output_path.name} "
            f"(font {handle.base_font}, {len(assignments)} field(s) set)"
        )
    return EXIT_SUCCESS
