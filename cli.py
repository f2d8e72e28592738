#!/usr/bin/env python3
"""
Filing Cabinet Explorer - Console Mode

Usage:
    python cli.py <cabinet_file> [options]

Options:
    --info                  Show cabinet index info and exit
    --tree                  Show folder tree and exit
    --list <index>          List items of a folder
    --show <index>          Show the content of a record
    --scan                  Show mail message summaries
    --export <format>       Export format: mbox, eudora, favorites
    --output <path>         Output file or directory
    --folder <index>        Folder (or envelope) to export (default: root)
    --all                   Export every mail record, ignoring folders
    --split-folders         One mbox file per folder in the output directory
    --limit <n>             Limit number of items
    --verbose               Verbose output
"""

import sys
import argparse
import logging
from pathlib import Path

# Add package root to path
sys.path.insert(0, str(Path(__file__).parent))

from pfc_explorer.core.cabinet_reader import CabinetReader, ReadProgress
from pfc_explorer.core.container import Container
from pfc_explorer.core.errors import CabinetError
from pfc_explorer.core.mail_message import MailMessage
from pfc_explorer.core.record import Record, RecordType, column_names, envelope_columns
from pfc_explorer.core.traversal import CabinetWalker, ENTER, LEAVE
from pfc_explorer.exporters import EXPORT_FORMATS, ExportOptions, get_exporter


def setup_logging(verbose: bool):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def open_cabinet(cabinet_path: str) -> Container:
    """Read the cabinet, exiting with status 1 on failure."""
    if not Path(cabinet_path).exists():
        print(f"ERROR: File not found: {cabinet_path}")
        sys.exit(1)

    print(f"Reading cabinet file {cabinet_path}")

    def show_progress(progress: ReadProgress):
        if progress.percent % 10 == 0:
            print(f"  {progress.percent}%", end="\r", flush=True)

    reader = CabinetReader(cabinet_path)
    try:
        container = reader.read(progress_callback=show_progress)
    except CabinetError as e:
        print(f"\nStopped at {reader.progress.percent}%")
        print(f"ERROR: {e}")
        sys.exit(1)

    print(f"Read {len(container)} records")
    return container


def get_folder(container: Container, index) -> Record:
    """Resolve a record index argument, defaulting to the cabinet root."""
    if index is None:
        record = container.root
        if record is None:
            print("ERROR: Cabinet has no root folder")
            sys.exit(1)
        return record
    if not container.has_record(index):
        print(f"ERROR: No record {index} (cabinet has {len(container)})")
        sys.exit(1)
    return container[index]


def show_info(container: Container):
    """Show cabinet index information."""
    print("\n=== CABINET INFO ===")
    print(f"Index start:   {container.index_start}")
    print(f"Index length:  {container.index_length}")
    print(f"Index entries: {container.index_count}")
    print(f"Root address:  {container.root_address}")
    print(f"Records:       {len(container)}")

    counts: dict[RecordType, int] = {}
    for record in container:
        counts[record.record_type] = counts.get(record.record_type, 0) + 1

    print(f"\n{'Record Type':<20} {'Count':<10}")
    print("-" * 30)
    for record_type in RecordType:
        if counts.get(record_type):
            print(f"{record_type.name:<20} {counts[record_type]:<10}")


def show_tree(walker: CabinetWalker, folder):
    """Print the folder tree with item counts."""
    print("\n=== FOLDERS ===")
    depth = -1
    for event, record in walker.walk(folder):
        if event == ENTER:
            depth += 1
            name = record.label or "(root)"
            system = " [system]" if record.is_system_folder else ""
            print(f"{'  ' * depth}{name}{system}  "
                  f"(#{record.index}, {walker.item_count(record)} items)")
        elif event == LEAVE:
            depth -= 1


def list_items(walker: CabinetWalker, folder, limit: int):
    """List the items of one folder as table rows."""
    headings = column_names(folder)
    print(f"\n=== {folder.label or '(root)'} ===")
    print(f"{headings[0]:<24} {headings[1]:<28} {headings[2]:<40} {headings[3]:<6}")
    print("-" * 100)

    for count, item in enumerate(walker.iter_items(folder)):
        if limit and count >= limit:
            break
        columns = [value or "" for value in envelope_columns(item)]
        print(f"{columns[0][:24]:<24} {columns[1][:28]:<28} {columns[2][:40]:<40} {columns[3]:<6}")


def show_record(container: Container, record):
    """Print a record's classification and decoded content."""
    print(f"\n=== RECORD {record.index} ===")
    print(f"Type: {record.record_type.name}")
    print(f"Address: {record.address}, Length: {record.length}")
    if record.is_envelope:
        print(f"Label: {record.label}")
        print(f"Folder: {record.is_folder}, System: {record.is_system_folder}, "
              f"Flags: {record.flags:#04x}")
        print(f"Pointers: {record.pointers.to_dict()}")

    try:
        content = container.reconstruct(record)
    except CabinetError as e:
        print(f"\nContent could not be decoded: {e}")
        return

    if content is None:
        return
    print()
    if isinstance(content, MailMessage):
        print(content.head_string(record.is_outgoing))
        print(content.text_string(show_header=True))
    elif hasattr(content, "text_string"):
        print(content.head_string())
        print(content.text_string())
    else:
        print(f"URL: {content.url}")


def scan_messages(container: Container, limit: int):
    """Scan and display mail message summaries."""
    print("\n=== SCANNING MESSAGES ===")

    count = 0
    for record in container.records_of_type(RecordType.MAIL_DATA):
        if count >= limit:
            break
        count += 1

        print(f"\n--- Message {count} (record {record.index}) ---")
        try:
            message = MailMessage.from_record(record)
        except CabinetError as e:
            print(f"Corrupt record: {e}")
            continue

        print(f"Date: {message.date_string or '(none)'}")
        print(f"From: {message.sender or '(none)'}")
        print(f"To: {message.to or '(none)'}")
        print(f"Subject: {message.subject or '(none)'}")
        if message.attachment:
            print(f"Attachment: {message.attachment}")
        if message.body:
            preview = message.body_text[:200].replace('\n', ' ')
            print(f"Body: {preview}...")

    print(f"\nShowed {count} messages (use --limit to see more)")


def export_items(container: Container, args) -> int:
    """Export to the requested format."""
    if not args.output:
        print("ERROR: --output is required for export")
        return 1

    output_path = Path(args.output)
    if output_path.resolve() == Path(args.cabinet_file).resolve():
        print("ERROR: Cabinet file and output file must be different")
        return 1

    options = ExportOptions(
        output_path=str(output_path),
        folder_structure=args.split_folders,
        overwrite_existing=True,
        max_items=args.limit or 0,
    )
    exporter = get_exporter(args.export, options)

    print(f"\nExporting to: {output_path}")
    print(f"Format: {exporter.format_name}")

    if args.all:
        if exporter.data_type is None:
            print(f"ERROR: --all is not supported for {args.export} export")
            return 1
        progress = exporter.export_records(container)
    else:
        progress = exporter.export(container, get_folder(container, args.folder))

    print(f"\n=== EXPORT COMPLETE ===")
    print(f"Exported: {progress.exported_items}")
    print(f"Failed: {progress.failed_items}")
    if progress.error:
        print(f"ERROR: {progress.error}")
        return 1
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Filing Cabinet Explorer - Console Mode",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python cli.py main.pfc --info
    python cli.py main.pfc --tree
    python cli.py main.pfc --list 12
    python cli.py main.pfc --export mbox --output mail.mbox
    python cli.py main.pfc --export mbox --output mail.mbox --all
    python cli.py main.pfc --export favorites --folder 7 --output favorites.html
        """
    )

    parser.add_argument('cabinet_file', help='Path to cabinet (PFC) file')
    parser.add_argument('--info', action='store_true',
                        help='Show cabinet info and exit')
    parser.add_argument('--tree', action='store_true',
                        help='Show folder tree and exit')
    parser.add_argument('--list', type=int, metavar='INDEX',
                        help='List items of a folder')
    parser.add_argument('--show', type=int, metavar='INDEX',
                        help='Show a record and its content')
    parser.add_argument('--scan', action='store_true',
                        help='Scan and show mail message summaries')
    parser.add_argument('--export', choices=sorted(EXPORT_FORMATS),
                        help='Export format')
    parser.add_argument('--output', '-o', help='Output path')
    parser.add_argument('--folder', '-f', type=int,
                        help='Folder or envelope index to export (default: root)')
    parser.add_argument('--all', action='store_true',
                        help='Export every mail record, ignoring folders')
    parser.add_argument('--split-folders', action='store_true',
                        help='Write one mbox file per folder into the output directory')
    parser.add_argument('--limit', '-n', type=int,
                        help='Limit number of items')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output')

    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    container = open_cabinet(args.cabinet_file)
    walker = CabinetWalker(container)

    try:
        if args.info:
            show_info(container)
        elif args.tree:
            show_tree(walker, get_folder(container, None))
        elif args.list is not None:
            list_items(walker, get_folder(container, args.list), args.limit or 0)
        elif args.show is not None:
            show_record(container, get_folder(container, args.show))
        elif args.scan:
            scan_messages(container, args.limit or 20)
        elif args.export:
            return export_items(container, args)
        else:
            # Default: show info
            show_info(container)
            print("\nUse --help for export options")
    except CabinetError as e:
        print(f"ERROR: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
