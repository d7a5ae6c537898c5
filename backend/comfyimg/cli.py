#!/usr/bin/env python3
"""
ComfyImg CLI

Command-line front end for the ComfyUI tools, configured from the
environment (or a .env file).

    comfyimg resolve
    comfyimg info samplers
    comfyimg generate "a lighthouse at dusk, oil painting" --width 768 -o out/
"""

import argparse
import asyncio
import base64
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ComfyImgConfig
from .errors import ConfigurationError
from .mcp_tools.tools.image_tools import ComfyUIImageTool
from .mcp_tools.tools.info_tools import INFO_TYPES, ComfyUIInfoTool
from .mcp_tools.tools.workflow_state import WorkflowState
from ..utils.logger import configure_logging

_EXTENSIONS = {"image/png": ".png", "image/jpeg": ".jpg", "image/webp": ".webp"}

GENERATE_OPTIONS = {
    "negativePrompt", "seed", "model", "width", "height",
    "sampler", "scheduler", "cfg", "steps",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="comfyimg", description="ComfyUI image tools")
    parser.add_argument("--env-file", help="Path to a .env file")
    parser.add_argument("--log-level", help="Log level (overrides COMFYIMG_LOG_LEVEL)")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("resolve", help="Print the resolved workflow roles")

    info = sub.add_parser("info", help="List models, samplers or schedulers")
    info.add_argument("info_type", choices=INFO_TYPES)

    gen = sub.add_parser("generate", help="Generate images")
    gen.add_argument("prompt")
    gen.add_argument("--negative", dest="negativePrompt")
    gen.add_argument("--seed", type=int)
    gen.add_argument("--model")
    gen.add_argument("--width", type=int)
    gen.add_argument("--height", type=int)
    gen.add_argument("--sampler")
    gen.add_argument("--scheduler")
    gen.add_argument("--cfg", type=int)
    gen.add_argument("--steps", type=int)
    gen.add_argument("-o", "--output-dir", default=".", help="Where to save the images")

    return parser


def save_images(content: List[Dict[str, Any]], output_dir: Path) -> List[Path]:
    """Write the base64 image blocks of a tool result to ``output_dir``."""
    output_dir.mkdir(parents=True, exist_ok=True)
    saved = []
    for index, block in enumerate(b for b in content if b.get("type") == "image"):
        source = block["source"]
        suffix = _EXTENSIONS.get(source["media_type"], ".png")
        path = output_dir / f"comfyimg_{index:03d}{suffix}"
        path.write_bytes(base64.b64decode(source["data"]))
        saved.append(path)
    return saved


async def run(args: argparse.Namespace, state: WorkflowState) -> int:
    if args.command == "resolve":
        print(json.dumps(state.bindings.to_dict(), indent=2))
        return 0

    if args.command == "info":
        result = await ComfyUIInfoTool(state).execute(info_type=args.info_type)
        if not result["success"]:
            print(result["error"], file=sys.stderr)
            return 1
        print("\n".join(result[args.info_type]))
        return 0

    tool = ComfyUIImageTool(state)
    accepted = tool.get_schema()["properties"]
    arguments = {
        key: value
        for key, value in vars(args).items()
        if key in accepted and value is not None
    }
    ignored = sorted(
        key for key, value in vars(args).items()
        if value is not None and key not in accepted and key in GENERATE_OPTIONS
    )
    if ignored:
        print(f"Ignoring options not supported by this workflow: {', '.join(ignored)}", file=sys.stderr)

    result = await tool.execute(**arguments)
    if not result["success"]:
        print(result["error"], file=sys.stderr)
        return 1

    for path in save_images(result["content"], Path(args.output_dir)):
        print(path)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = ComfyImgConfig.from_env(env_file=args.env_file)
        configure_logging(
            log_level=args.log_level or config.log_level,
            log_dir=config.log_dir,
            force=True,
        )
        state = WorkflowState(config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    return asyncio.run(run(args, state))


if __name__ == "__main__":
    sys.exit(main())
