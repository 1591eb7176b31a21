"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = [
    "register", "login", "subjects", "subscribe", "unsubscribe", "channels",
    "files", "upload", "download", "favorite", "shared", "share",
    "shared-download", "stats", "clear", "exit", "help",
]

# Commands whose first argument (or second, for upload/share) is a subject name.
SUBJECT_ARGUMENT_POSITIONS = {
    "unsubscribe": 1,
    "files": 1,
    "shared": 1,
    "shared-download": 1,
    "upload": 2,
    "share": 2,
}

CATEGORY_NAMES = ("Main", "Theory", "Practical")

STYLE = Style.from_dict(
    {
        "prompt": "#2E8B57 bold",
        "command": "#0088ff bold",
    }
)

SEA_GREEN = "\033[38;2;46;139;87m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{SEA_GREEN}
 _   _       _       ____  _
| \\ | | ___ | |_ ___/ ___|| |__   __ _ _ __ ___
|  \\| |/ _ \\| __/ _ \\___ \\| '_ \\ / _` | '__/ _ \\
| |\\  | (_) | ||  __/___) | | | | (_| | | |  __/
|_| \\_|\\___/ \\__\\___|____/|_| |_|\\__,_|_|  \\___|
{RESET}"""

WELCOME_TITLE = "NoteShare CLI - course notes on Telegram"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "noteshare> "

HELP_TEXT = """Available commands:
  register <username> <password>            Register new user account
  login <username> <password>               Login, get API key and sync channels
  subjects                                  List subscribed subjects
  subscribe <subject> [<subject> ...]       Join a subject's Main/Theory/Practical channels
  unsubscribe <subject>                     Leave a subject's channels
  channels [--sync]                         Show the local channel directory
  files <subject> <type>                    List your files in a channel
  upload <path> <subject> <type>            Upload a file into a channel
  download <file_id> [output_path]          Download one of your files
  favorite <file_id>                        Toggle a file as favorite
  shared [subject]                          List files in the public channels
  share <path> <subject>                    Upload a file into a public channel
  shared-download <subject> <id> [output]   Download a public file
  stats [--refresh]                         Show dashboard statistics
  clear                                     Clear screen and redisplay welcome message
  help                                      Show this help
  exit                                      Exit REPL

Quote subject names that contain spaces.
Examples:
  register alice mypassword123
  subscribe "Advanced Java" "Software Engineering"
  upload notes/week1.pdf "Advanced Java" Theory
  files "Advanced Java" Theory
  download "Advanced Java-Theory-42"
  stats --refresh"""
