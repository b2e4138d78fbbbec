#!/usr/bin/env python3
"""
Terminal demo for the end-to-end encrypted chat

Provides a command-line interface for:
- Acting as any participant of the demo roster
- Chatting with other participants (encrypted end to end in-process)
- Watching the ciphertext that crosses the transport
- Hashing text with the playground's hash tool
"""

import argparse
import sys
from typing import Optional
from prompt_toolkit import PromptSession
from prompt_toolkit.patch_stdout import patch_stdout

from cryptolab import hashing
from e2e import ChatContext, ChatEntry, ChatSession, IdentityConflictError, Participant, Settings


HELP_TEXT = """Commands:
  /as <name>     - Act as participant <name>
  /chat <name>   - Start chat with participant <name>
  /exit          - Exit current chat
  /users         - List all participants
  /chats         - List your conversations
  /history       - Show current conversation
  /rename <name> - Rename yourself (keeps your keys)
  /wire          - Show what went over the wire
  /hash <text>   - SHA-512 of <text>
  /quit          - Quit application"""


class PlaygroundClient:
    """
    Interactive front end for a ChatContext.
    """

    def __init__(self, context: ChatContext, user: Optional[str] = None):
        """
        Initialize the terminal demo.

        Args:
            context: Chat world to drive
            user: Participant to act as (defaults to the first roster member)
        """
        self.context = context
        roster = context.demo_participants()
        self.me: Optional[Participant] = None
        if user:
            self.me = context.participant(user)
        elif roster:
            self.me = roster[0]
        self.current_chat: Optional[ChatSession] = None
        self.running = False
        self._watched = set()

    @property
    def fallback(self) -> str:
        return self.context.settings.decryption_error_text

    def _format(self, entry: ChatEntry) -> str:
        return f"{entry.sender.identity}: {entry.display_text(self.fallback)}"

    def _on_entry(self, chat: ChatSession, entry: ChatEntry):
        """Print messages that arrive in a chat we are looking at"""
        if chat is self.current_chat and entry.sender is not self.me:
            print(f"\n[{chat.them.identity}] {self._format(entry)}")

    def start_chat(self, name: str):
        """Open the chat with another participant"""
        if self.me is None:
            print("Pick a participant first with /as <name>")
            return
        other = self.context.participant(name)
        try:
            chat = self.me.get_chat(other)
        except ValueError as e:
            print(f"Cannot chat: {e}")
            return
        if id(chat) not in self._watched:
            chat.add_listener(self._on_entry)
            self._watched.add(id(chat))
        self.current_chat = chat
        print(f"Chatting with {other.identity}. Type '/exit' to leave chat, '/help' for commands.")
        self.show_history()

    def send_message(self, text: str):
        """Send text in the current chat"""
        if self.current_chat is None:
            print("No active chat. Use /chat <name> to start.")
            return
        envelope = self.current_chat.send(text)
        print(f"[sent {len(envelope.ciphertext)} encrypted bytes to {envelope.recipient}]")

    def show_history(self):
        if self.current_chat is None:
            print("No active chat.")
            return
        messages = self.current_chat.messages
        if not messages:
            print("No messages.")
            return
        print("\n--- Message History ---")
        for entry in messages:
            print(f"  {self._format(entry)}")
        print("--- End History ---\n")

    def list_chats(self):
        if self.me is None:
            print("No active participant.")
            return
        print("Conversations:")
        for chat in self.me.chats():
            last = chat.last_message
            preview = last.display_text(self.fallback) if last else "No messages."
            print(f"  - {chat.them.identity}: {preview}")

    def list_users(self):
        print("Participants:")
        for identity in self.context.registry.identities():
            marker = " (you)" if self.me is not None and identity == self.me.identity else ""
            print(f"  - {identity}{marker}")

    def show_wire(self):
        print("Wire log:")
        for envelope in self.context.wire_log:
            print(f"  {envelope.sender} -> {envelope.recipient}: {envelope.ciphertext.hex()[:48]}...")

    def rename(self, name: str):
        if self.me is None:
            print("No active participant.")
            return
        old = self.me.identity
        try:
            self.me.rename(name)
        except IdentityConflictError as e:
            print(f"Rename failed: {e}")
            return
        print(f"{old} is now {self.me.identity}")

    def handle_input(self, user_input: str):
        """Dispatch one line of input"""
        user_input = user_input.strip()
        if not user_input:
            return
        if user_input.startswith("/"):
            self.handle_command(user_input)
        else:
            self.send_message(user_input)

    def handle_command(self, command: str):
        """Handle slash commands"""
        parts = command.split(maxsplit=1)
        cmd = parts[0].lower()

        if cmd == "/as" and len(parts) == 2:
            self.me = self.context.participant(parts[1])
            self.current_chat = None
            print(f"You are now {self.me.identity}")
        elif cmd == "/chat" and len(parts) == 2:
            self.start_chat(parts[1])
        elif cmd == "/exit":
            self.current_chat = None
            print("Exited chat")
        elif cmd == "/users":
            self.list_users()
        elif cmd == "/chats":
            self.list_chats()
        elif cmd == "/history":
            self.show_history()
        elif cmd == "/rename" and len(parts) == 2:
            self.rename(parts[1])
        elif cmd == "/wire":
            self.show_wire()
        elif cmd == "/hash" and len(parts) == 2:
            print(hashing.hash_text(parts[1]))
        elif cmd == "/quit":
            self.running = False
        elif cmd == "/help":
            print(HELP_TEXT)
        else:
            print("Unknown command. Type /help for help.")

    def prompt_text(self) -> str:
        who = self.me.identity if self.me is not None else "?"
        if self.current_chat is not None:
            return f"[{who} -> {self.current_chat.them.identity}] > "
        return f"[{who}] > "

    def run_interactive(self):
        """Run interactive chat session"""
        self.running = True
        session = PromptSession()

        print()
        print(HELP_TEXT)
        print()

        while self.running:
            try:
                with patch_stdout():
                    user_input = session.prompt(self.prompt_text())
                self.handle_input(user_input)
            except KeyboardInterrupt:
                break
            except EOFError:
                break


def main(argv=None):
    """Main entry point"""
    parser = argparse.ArgumentParser(description="End-to-end encrypted chat playground")
    parser.add_argument("--user", help="participant to act as")
    args = parser.parse_args(argv)

    client = PlaygroundClient(ChatContext(Settings.from_env()), user=args.user)

    print("=" * 50)
    print("End-to-End Encrypted Chat Playground")
    print("=" * 50)

    client.run_interactive()
    print("\nGoodbye!")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(0)
