#!/usr/bin/env python3
"""
Duplicate Detection Pipeline

Reads JSON from stdin containing:
- files: [{"path": ..., "content": ...}]
- config: DRY settings (camelCase keys, all optional)

Outputs JSON to stdout containing:
- violations
- filesProcessed
- executionTime
- errors
- status
- healthScore
- metrics

Exit status: 0 on success, 1 on malformed input, 2 on invalid configuration.
"""

import json
import logging
import sys
from typing import Any, Dict, List, TextIO

from pydantic import ValidationError

from .adapters.registry import create_default_registry
from .analyzers.dry_analyzer import DuplicateDetectionEngine
from .errors import ConfigurationError
from .models.scan_result import SourceFile
from .similarity.config import SimilarityConfig


def configure_logging() -> None:
    """Send log records to stderr; stdout carries only the JSON result."""
    logging.basicConfig(
        level=logging.DEBUG if SimilarityConfig.DEBUG else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )


def parse_input(input_data: Dict[str, Any]) -> List[SourceFile]:
    return [SourceFile.model_validate(entry) for entry in input_data.get('files', [])]


def run(input_data: Dict[str, Any], output: TextIO) -> int:
    """Run one detection pass for already-decoded input and write the result."""
    try:
        engine = DuplicateDetectionEngine(create_default_registry(), input_data.get('config'))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        files = parse_input(input_data)
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1

    result = engine.analyze(files)
    json.dump(result.to_dict(), output, indent=2)
    output.write('\n')
    return 0


def main() -> int:
    """
    Main pipeline execution
    """
    configure_logging()
    try:
        input_data = json.load(sys.stdin)
    except json.JSONDecodeError as e:
        print(f"Invalid JSON input: {e}", file=sys.stderr)
        return 1
    if not isinstance(input_data, dict):
        print("Invalid input: expected a JSON object", file=sys.stderr)
        return 1
    return run(input_data, sys.stdout)


if __name__ == '__main__':
    sys.exit(main())
