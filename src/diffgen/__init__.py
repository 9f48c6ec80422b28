"""Generate a changelog for a range of git history with a chat-completion model."""
