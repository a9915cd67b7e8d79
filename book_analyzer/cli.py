"""Command-line interface for Book Analyzer."""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from book_analyzer.ai_utils import ChapterAnalyzer
from book_analyzer.config import INPUT_MODES, OUTPUT_FORMATS, PipelineConfig
from book_analyzer.errors import BookAnalyzerError
from book_analyzer.models import KNOWN_BOARDS, BookMetadata, Chapter, RunState
from book_analyzer.output import FileSink
from book_analyzer.pdf_utils import get_total_pages
from book_analyzer.pipeline import CHAPTER_LIST_FILENAME, BookPipeline
from book_analyzer.utils import format_chapter_list, parse_chapter_list, sanitize_filename


# Load environment variables from .env file
load_dotenv()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Split a textbook PDF into chapters and extract their questions using AI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  %(prog)s -i textbook.pdf --board CBSE --subject Mathematics
  %(prog)s -i textbook.pdf --board ICSE --subject Physics --format questions --question-pdf
  %(prog)s -i textbook.pdf --list-chapters
  %(prog)s -i textbook.pdf --board CBSE --subject Science --chapters ./textbook/chapters.txt

Known boards: {", ".join(KNOWN_BOARDS)}
        """
    )
    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Path to the input PDF file"
    )
    parser.add_argument(
        "--output-dir", "-o",
        help="Output directory (default: folder named after PDF in same location)"
    )
    parser.add_argument("--board", help="Examination board, e.g. CBSE")
    parser.add_argument("--subject", help="Subject of the book, e.g. Mathematics")
    parser.add_argument(
        "--api-key", "-k",
        help="API key (can also use OPENAI_API_KEY env var or .env file)"
    )
    parser.add_argument(
        "--api-url", "-u",
        help="API base URL (can also use OPENAI_URL env var or .env file)"
    )
    parser.add_argument(
        "--model", "-m",
        help="Model name (can also use OPENAI_MODEL env var or .env file)"
    )
    parser.add_argument(
        "--format", "-f",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        help="Per-chapter output: free Markdown or a structured question bank"
    )
    parser.add_argument(
        "--input-mode",
        choices=INPUT_MODES,
        help="Send pages to the model as extracted text or as PDF files"
    )
    parser.add_argument(
        "--question-pdf",
        action="store_true",
        default=None,
        help="Also render each question bank as a PDF (with --format questions)"
    )
    parser.add_argument(
        "--chapters", "-c",
        help=f"Use an edited {CHAPTER_LIST_FILENAME} instead of detecting chapters"
    )
    parser.add_argument(
        "--list-chapters", "-l",
        action="store_true",
        help=f"Just detect the chapters, write {CHAPTER_LIST_FILENAME} and exit"
    )
    parser.add_argument(
        "--review", "-r",
        action="store_true",
        help="Show the detected chapters and ask for confirmation before processing"
    )

    return parser.parse_args(argv)


def confirm_chapters(chapters: list[Chapter]) -> list[Chapter]:
    """Print the chapter list and ask the user whether to continue."""
    print(f"\nIdentified {len(chapters)} chapters:")
    for i, ch in enumerate(chapters, 1):
        print(f"  {i:2d}. {ch.title} (pages {ch.start_page}-{ch.end_page})")
    answer = input("\nProcess these chapters? [Y/n] ").strip().lower()
    if answer not in ("", "y", "yes"):
        raise BookAnalyzerError(
            f"Chapter review declined. Edit {CHAPTER_LIST_FILENAME} and re-run with --chapters."
        )
    return chapters


def list_chapters(pdf_bytes: bytes, analyzer: ChapterAnalyzer, sink: FileSink, config: PipelineConfig) -> int:
    """Detect and validate chapters, write the chapter index, and stop."""
    pipeline = BookPipeline(analyzer, sink, config, on_log=print)
    try:
        chapters = pipeline.find_chapters(pdf_bytes, None)
    except BookAnalyzerError as e:
        print(f"Error: {e}")
        return 1
    path = sink.save(format_chapter_list(chapters), CHAPTER_LIST_FILENAME)
    print(f"\n{format_chapter_list(chapters)}")
    print(f"\nDone! Wrote {len(chapters)} chapters to {path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = PipelineConfig.from_env(
            api_key=args.api_key,
            base_url=args.api_url,
            model=args.model,
            output_format=args.output_format,
            input_mode=args.input_mode,
            question_pdf=args.question_pdf,
        )
    except BookAnalyzerError as e:
        print(f"Error: {e}")
        return 1
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")

    # Validate input file
    pdf_path = Path(args.input)
    if not pdf_path.exists():
        print(f"Error: File not found: {pdf_path}")
        return 1

    if not pdf_path.suffix.lower() == ".pdf":
        print(f"Error: File must be a PDF: {pdf_path}")
        return 1

    metadata = BookMetadata(board=args.board or "", subject=args.subject or "")
    if not args.list_chapters and not metadata.is_complete:
        print("Error: Please select board and enter subject before analyzing (--board, --subject)")
        return 1

    supplied_chapters = None
    if args.chapters:
        chapters_path = Path(args.chapters)
        if not chapters_path.exists():
            print(f"Error: File not found: {chapters_path}")
            return 1
        supplied_chapters = parse_chapter_list(chapters_path.read_text(encoding="utf-8"))

    # Setup output directory - always create folder named after the textbook
    book_name = sanitize_filename(pdf_path.stem)
    if args.output_dir:
        output_dir = Path(args.output_dir) / book_name
    else:
        output_dir = pdf_path.parent / book_name

    try:
        analyzer = ChapterAnalyzer(config)
    except BookAnalyzerError as e:
        print(f"Error: {e}")
        return 1

    sink = FileSink(output_dir)
    print(f"Output directory: {output_dir}")
    pdf_bytes = pdf_path.read_bytes()
    total_pages = get_total_pages(pdf_bytes)
    print(f"Total pages: {total_pages}")

    if args.list_chapters:
        return list_chapters(pdf_bytes, analyzer, sink, config)

    pipeline = BookPipeline(
        analyzer,
        sink,
        config,
        review=confirm_chapters if args.review else None,
        on_log=print,
    )
    try:
        context = pipeline.run(pdf_bytes, metadata, chapters=supplied_chapters)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 1

    if context.state is RunState.ERROR:
        print(f"\nError: {context.error}")
        return 1

    print(f"\nDone! Created {len(context.outputs)} files in {output_dir}.")
    if context.skipped:
        print(f"Skipped {len(context.skipped)} chapters with empty page ranges.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
