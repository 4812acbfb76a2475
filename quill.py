import asyncio
import sys
from pathlib import Path

from quill.quill_runtime import ScriptRunner, load_config


# A basic awaitable input prompt.
async def ainput(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return await loop.run_in_executor(None, sys.stdin.readline)


def print_effect(effect: dict):
    stream = sys.stderr if effect.get('topics') == ['stderr'] else sys.stdout
    print(effect.get('message', ''), file=stream)


async def run_script_file(file_path: str, config=None):
    """Run every line of a Quill file in its own cursor; exit 1 on the first error."""
    runner = ScriptRunner(config, on_effect=print_effect)
    p = Path(file_path)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    for line in source.splitlines():
        if not line.strip():
            continue
        result = await runner.handle_script(line)
        if result.status == 'error':
            print(result.format_error(), file=sys.stderr)
            raise SystemExit(1)


async def main():
    """Run a script file when provided, otherwise start the interactive REPL."""
    config = load_config()

    if len(sys.argv) > 1:
        arg = sys.argv[1]
        if not arg.startswith("-"):
            await run_script_file(arg, config)
            return

    if config.banner:
        print(config.banner)

    runner = ScriptRunner(config, on_effect=print_effect)

    while True:
        raw = await ainput(config.prompt)
        if raw == "":
            print()
            break
        line = raw.rstrip("\n")
        if line.strip() == "exit":
            break

        # No state survives across lines: each one gets a fresh cursor.
        result = await runner.handle_script(line)

        if result.status == 'error':
            print(result.format_error(), file=sys.stderr)
            if config.exit_on_error:
                raise SystemExit(1)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExiting.")
