"""
CLI tool to fill a form from a transcript.

Usage:
    python scripts/fill_form.py --schema form.json "My name is Alex, email alex@example.com"
    echo "Subscribe: yes" | python scripts/fill_form.py --schema form.json

Examples:
    # Show which spans each pass claimed
    python scripts/fill_form.py --schema form.json --trace "I live in Mumbai"

    # Pin relative dates ("tomorrow") for reproducible output
    python scripts/fill_form.py --schema form.json --reference-time 2025-01-06T09:00 "see you tomorrow"

The schema file holds either a JSON list of fields or {"fields": [...]}.
"""

import argparse
import json
import os
import sys
from datetime import datetime

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from dotenv import load_dotenv
load_dotenv(".env.local")

from pydantic import ValidationError

from voiceform.logging_config import setup_logging, get_logger, trace_id_var, form_id_var, generate_trace_id
from voiceform.schemas.form import FormSchema
from voiceform.services.date_parsing import DateparserSearch
from voiceform.services.form_state import summarize_result
from voiceform.services.transcript_parser import parse_transcript

setup_logging()
logger = get_logger(__name__)


def load_schema(path: str) -> FormSchema:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, list):
        data = {"fields": data}
    return FormSchema.model_validate(data)


def fill_form(
    schema: FormSchema,
    transcript: str,
    reference_time: datetime | None = None,
    include_trace: bool = False,
) -> dict:
    """Parse one transcript and return a JSON-ready payload."""
    result = parse_transcript(
        schema,
        transcript,
        date_parser=DateparserSearch(reference_time=reference_time),
    )
    payload = {
        "updates": [u.model_dump(by_alias=True) for u in result.updates],
        "summary": summarize_result(result, transcript),
    }
    if include_trace:
        payload["trace"] = result.trace.model_dump(mode="json")
    return payload


def main() -> int:
    parser = argparse.ArgumentParser(description="Fill a form from a transcript")
    parser.add_argument("transcript", nargs="?", help="Transcript text (read from stdin if omitted)")
    parser.add_argument("--schema", required=True, help="Path to the form schema JSON")
    parser.add_argument("--trace", action="store_true", help="Include the diagnostic trace")
    parser.add_argument("--reference-time", help="ISO timestamp used for relative dates")
    args = parser.parse_args()

    trace_id_var.set(generate_trace_id())
    form_id_var.set(os.path.splitext(os.path.basename(args.schema))[0])

    try:
        schema = load_schema(args.schema)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error("schema_load_failed", path=args.schema, error=str(e))
        print(f"Invalid schema: {e}", file=sys.stderr)
        return 2

    reference_time = None
    if args.reference_time:
        try:
            reference_time = datetime.fromisoformat(args.reference_time)
        except ValueError:
            print(f"Invalid --reference-time: {args.reference_time}", file=sys.stderr)
            return 2

    transcript = args.transcript if args.transcript is not None else sys.stdin.read()
    payload = fill_form(schema, transcript, reference_time, args.trace)
    print(json.dumps(payload, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
