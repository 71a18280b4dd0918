"""Todo list widget showing the latest TodoWrite snapshot."""
from rich.text import Text
from textual.widgets import Static

from rafctl.correlator import TodoSnapshot


class TodoListWidget(Static):
    """Displays todos with in-progress/completed/pending markers."""

    def format_todo(self, content: str, status: str) -> str:
        """Format a single todo line as plain text (for testing)."""
        if status == "in_progress":
            return f"  >> {content}"
        elif status == "completed":
            return f"  ✓  {content}"
        else:
            return f"     {content}"

    def update_todos(self, todos: TodoSnapshot | None):
        if todos is None or not todos.items:
            self.update(Text("  (no todos)", style="dim"))
            return
        text = Text(f"  {todos.progress} done\n", style="bold")
        for i, item in enumerate(todos.items):
            if i > 0:
                text.append("\n")
            label = item.content
            if item.status == "in_progress" and item.active_form:
                label = item.active_form
            line = self.format_todo(label, item.status)
            if item.status == "in_progress":
                text.append(line, style="bold reverse")
            elif item.status == "completed":
                text.append(line, style="dim")
            else:
                text.append(line)
        self.update(text)
