"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["upload", "info", "download", "list", "use", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#2E86DE bold",
        "command": "#0088ff bold",
    }
)

WELCOME_TITLE = "Package Store CLI"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "pkgstore> "

HELP_TEXT = """Available commands:
  upload <path> <version> [--user <id>]   Upload a file as a new package version
  info <package-id>                       Show package metadata
  download <package-id> [output-path]     Download package content (defaults to stored file name)
  list [--user <id>]                      List package versions ordered by version id
  use <user-id>                           Set the default user id
  clear                                   Clear screen and redisplay welcome message
  help                                    Show this help
  exit                                    Exit REPL

Examples:
  use alice
  upload build/app-1.2.0.zip 1.2.0
  list
  info 3f2c9a4e0b1d4c0f9a7e5b6d8c1f2a3b
  download 3f2c9a4e0b1d4c0f9a7e5b6d8c1f2a3b downloads/"""
