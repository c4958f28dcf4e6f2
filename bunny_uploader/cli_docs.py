"""Markdown reference docs for the argparse command tree."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Tuple


logger = logging.getLogger(__name__)


def _subcommands(parser: argparse.ArgumentParser) -> List[Tuple[str, argparse.ArgumentParser, str]]:
    """Return (name, parser, help) for every subcommand registered on parser."""
    found = []
    for action in parser._actions:
        if not isinstance(action, argparse._SubParsersAction):
            continue
        helps = {choice.dest: choice.help or "" for choice in action._choices_actions}
        for name, sub in action.choices.items():
            found.append((name, sub, helps.get(name, "")))
    return found


def _doc_name(prog: str) -> str:
    return prog.replace(" ", "_") + ".md"


def _render(parser: argparse.ArgumentParser, summary: str, see_also: List[Tuple[str, str]]) -> str:
    lines = [f"## {parser.prog}", ""]
    if summary:
        lines += [summary, ""]
    if parser.description:
        lines += ["### Synopsis", "", parser.description, ""]
    lines += ["```", parser.format_usage().strip(), "```", ""]

    options = []
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction) or not action.option_strings:
            continue
        flags = ", ".join(action.option_strings)
        help_text = action.help or ""
        options.append(f"  {flags:<28} {help_text}".rstrip())
    if options:
        lines += ["### Options", "", "```"] + options + ["```", ""]

    if see_also:
        lines += ["### SEE ALSO", ""]
        lines += [f"* [{prog}]({_doc_name(prog)})\t - {text}" for prog, text in see_also]
        lines.append("")
    return "\n".join(lines)


def generate_markdown_docs(parser: argparse.ArgumentParser, output_dir: Path) -> List[Path]:
    """
    Write one Markdown file per command into output_dir.

    Files are named after the command path, e.g. bunny-cli.md and
    bunny-cli_upload-folder.md. Returns the written paths.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    subcommands = _subcommands(parser)
    root_doc = _render(
        parser,
        parser.description or "",
        [(sub.prog, text) for _, sub, text in subcommands],
    )
    written = [output_dir / _doc_name(parser.prog)]
    written[0].write_text(root_doc, encoding="utf-8")

    for _, sub, text in subcommands:
        doc = _render(sub, text, [(parser.prog, parser.description or "")])
        path = output_dir / _doc_name(sub.prog)
        path.write_text(doc, encoding="utf-8")
        written.append(path)

    logger.info(f"Wrote {len(written)} doc files to {output_dir}")
    return written
