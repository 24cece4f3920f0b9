"""CLI utility functions for user interaction."""
import sys


def read_user_message(prompt: str = "🤖 You: ") -> str:
    """Read a chat message from user input via stdin."""
    print(prompt, end="", flush=True)
    line = sys.stdin.readline()
    if not line:  # EOF
        raise KeyboardInterrupt

    message = line.strip()
    if message.lower() in {"bye", "quit", "exit", "q"}:
        raise KeyboardInterrupt

    return message


def print_turn(result, *, verbose: bool = False) -> None:
    """Print a chat turn result to stdout."""
    print(f"✅ **Agent:** {result.response_text}")

    if result.tools_used:
        print(f"\n📋 **Used {len(result.tools_used)} tool(s):**")
        for i, record in enumerate(result.tools_used, 1):
            status = "ok" if record.success else f"failed: {record.error}"
            print(f"  {i}. {record.tool_name} ({status}, {record.execution_time_ms} ms)")

    if verbose:
        print("\n🧠 **Thinking process:**")
        for step in result.thinking_process:
            print(f"  - {step.step}: {step.reasoning}")

    usage = result.token_usage
    print(f"\n💰 {usage.total_tokens} tokens, ${usage.cost:.6f}")
