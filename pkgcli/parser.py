"""Command parser for CLI input."""

import shlex
from typing import Optional

from common.constants import VERSION_TRIM_CHARS
from pkgcli.models import (
    CommandRequest,
    DownloadCommand,
    InfoCommand,
    ListCommand,
    UploadCommand,
    UseCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL or joined argv

    Returns:
        CommandRequest object (one of Upload/Info/Download/List/Use)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    return parse_tokens(tokens)


def parse_tokens(tokens: list[str]) -> CommandRequest:
    """Parse an already tokenized command."""
    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]

    if command_name == "upload":
        return _parse_upload(tokens[1:])
    elif command_name == "info":
        return _parse_info(tokens[1:])
    elif command_name == "download":
        return _parse_download(tokens[1:])
    elif command_name == "list":
        return _parse_list(tokens[1:])
    elif command_name == "use":
        return _parse_use(tokens[1:])
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _pop_user_option(args: list[str]) -> tuple[list[str], Optional[str]]:
    """Extract a '--user <id>' option from the argument list."""
    if "--user" not in args:
        return args, None

    index = args.index("--user")
    if index + 1 >= len(args):
        raise ParseError("--user requires a value")

    user_id = args[index + 1]
    remaining = args[:index] + args[index + 2:]
    return remaining, user_id


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <path> <version> [--user <id>]' command."""
    args, user_id = _pop_user_option(args)
    if len(args) != 2:
        raise ParseError("upload requires a file path and a version id")

    file_path, version_id = args
    if not version_id.strip(VERSION_TRIM_CHARS):
        raise ParseError("Version id cannot be empty")

    return UploadCommand(file_path=file_path, version_id=version_id, user_id=user_id)


def _parse_info(args: list[str]) -> InfoCommand:
    """Parse 'info <package-id>' command."""
    if len(args) != 1:
        raise ParseError("info requires exactly one package id")

    return InfoCommand(package_id=args[0])


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <package-id> [output-path]' command."""
    if not args:
        raise ParseError("download requires a package id")
    if len(args) > 2:
        raise ParseError("download accepts at most package id and output path")

    output_path = args[1] if len(args) == 2 else None
    return DownloadCommand(package_id=args[0], output_path=output_path)


def _parse_list(args: list[str]) -> ListCommand:
    """Parse 'list [--user <id>]' command."""
    args, user_id = _pop_user_option(args)
    if args:
        raise ParseError(f"Unexpected arguments for list: {' '.join(args)}")

    return ListCommand(user_id=user_id)


def _parse_use(args: list[str]) -> UseCommand:
    """Parse 'use <user-id>' command."""
    if len(args) != 1:
        raise ParseError("use requires exactly one user id")

    return UseCommand(user_id=args[0])
