#!/usr/bin/env python3
"""Run a transform specification against an input file.

Usage:
    # Chain spec (the default transform)
    python scripts/run_transform.py spec.json input.json

    # Single transform
    python scripts/run_transform.py spec.json input.json --transform jolt-transform-shift

    # Custom class from a plugin directory
    python scripts/run_transform.py spec.json input.json \
        --transform jolt-transform-custom \
        --custom-class upcase.UpcaseTransform \
        --modules ./plugins

    # Saved template (spec argument is the template key)
    python scripts/run_transform.py rating_flatten input.json --template

    # Only check that the spec compiles
    python scripts/run_transform.py spec.json --validate
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.jolt.json_utils import to_json_string  # noqa: E402
from src.transformations.executor import (  # noqa: E402
    TransformationExecutor,
    TransformExecutionError,
)
from src.transformations.registry import TransformationRegistry  # noqa: E402
from src.transformations.schemas import (  # noqa: E402
    TRANSFORM_CHAIN,
    TransformSpecificationRequest,
)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Run a JSON transform specification against an input file"
    )
    parser.add_argument("spec", help="Spec JSON file, or template key with --template")
    parser.add_argument("input", nargs="?", help="Input JSON file (- for stdin)")
    parser.add_argument("--transform", default=TRANSFORM_CHAIN, help="Transform name")
    parser.add_argument("--custom-class", help="Class for jolt-transform-custom")
    parser.add_argument("--modules", help="Comma-separated module path")
    parser.add_argument("--template", action="store_true", help="Treat spec as a saved template key")
    parser.add_argument("--validate", action="store_true", help="Only validate the spec")
    parser.add_argument("--pretty", action="store_true", help="Indent the output")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.template:
        template = TransformationRegistry().get(args.spec)
        if template is None:
            print(f"Error: template '{args.spec}' not found", file=sys.stderr)
            return 1
        spec_text = json.dumps(template.specification)
        transform, custom_class = template.transform, template.custom_class
        modules = args.modules or template.modules
    else:
        spec_text = Path(args.spec).read_text()
        transform, custom_class = args.transform, args.custom_class
        modules = args.modules

    # a module path given here or by the template becomes the executor's own
    executor = TransformationExecutor(module_path=modules or "")

    request = TransformSpecificationRequest(
        transform=transform,
        specification=spec_text,
        custom_class=custom_class,
    )

    if args.validate:
        result = executor.validate(request)
        print(json.dumps(result.model_dump()))
        return 0 if result.valid else 1

    if args.input is None:
        parser.error("input is required unless --validate is given")
    if args.input == "-":
        request.input = sys.stdin.read()
    else:
        request.input = Path(args.input).read_text()

    try:
        output = executor.execute(request)
    except TransformExecutionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(to_json_string(output, pretty=args.pretty))
    return 0


if __name__ == "__main__":
    sys.exit(main())
