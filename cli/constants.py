"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = [
    "list", "upload", "download", "delete", "rename", "search",
    "status", "token", "channel", "clear", "exit", "help",
]

STYLE = Style.from_dict(
    {
        "prompt": "#5865F2 bold",
        "command": "#0088ff bold",
    }
)

BLURPLE = "\033[38;2;88;101;242m"
GREEN = "\033[38;2;87;242;135m"
RED = "\033[38;2;237;66;69m"
RESET = "\033[0m"

LOGO = f"""{BLURPLE}
 ╔╦╗╦ ╦╦ ╦╔╗╔╔╦╗╔═╗╦═╗╔═╗╔═╗╔═╗╔═╗╦═╗
  ║ ╠═╣║ ║║║║ ║║║╣ ╠╦╝╚═╗╠═╝║╣ ╠═╣╠╦╝
  ╩ ╩ ╩╚═╝╝╚╝═╩╝╚═╝╩╚═╚═╝╩  ╚═╝╩ ╩╩╚═
{RESET}"""

WELCOME_TITLE = "Thunderspear - large file storage on a chat channel"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "thunderspear> "

HELP_TEXT = """Available commands:
  list                                List uploaded files
  upload <path> [path ...]            Queue local files for upload
  download <id> [id ...] <target>     Rebuild files into target (file or directory)
  delete <id> [id ...]                Delete files, dequeue them, or abort the running upload
  rename <id> <name>                  Rename an uploaded file
  search <query>                      Fuzzy search uploaded and queued files
  status                              Show the running upload and the queue
  token <token>                       Save the Authorization token
  channel <channel-id>                Save the target channel
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Uploads run in the background; progress is printed as it happens.
Examples:
  token MTIzNDU2Nzg5.abc.def
  channel 1234567890
  upload ~/videos/holiday.mkv ~/backups/disk.img
  rename 3 holiday-2024.mkv
  download 3 ~/Downloads
  delete 3 4"""
