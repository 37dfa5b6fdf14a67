import asyncio
import logging
import os
import sys
from pathlib import Path

from rsl.rsl_config import load_config
from rsl.rsl_printer import Printer
from rsl.rsl_runtime import RSL


# A basic awaitable input prompt.
async def ainput(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return await loop.run_in_executor(None, sys.stdin.readline)


def make_runtime() -> RSL:
    config = load_config(os.environ.get("RSL_CONFIG"))
    if config.debug:
        logging.basicConfig(level=logging.DEBUG)
    return RSL(config)


async def run_script_file(file_path: str):
    """Run an RSL script file non-interactively and exit with appropriate status."""
    p = Path(file_path)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    runtime = make_runtime()
    printer = Printer()
    result = runtime.run(source)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        raise SystemExit(1)
    if result.value is not None:
        print(printer.pformat(result.value))


async def main():
    """Run a script file when provided, otherwise start the interactive REPL."""
    if len(sys.argv) > 1:
        arg = sys.argv[1]
        if not arg.startswith("-"):
            await run_script_file(arg)
            return

    print("RSL REPL v0.1")
    print("Enter a blank line to run. Type 'exit' or press Ctrl+D to quit.")

    runtime = make_runtime()
    printer = Printer()
    chunk = []

    while True:
        try:
            raw = await ainput(">> " if not chunk else ".. ")
            if raw == "":
                raise EOFError
            line = raw.rstrip("\r\n")

            if not chunk and line.strip() == "exit":
                break
            if line.strip():
                chunk.append(line)
                continue
            if not chunk:
                continue

            source = "\n".join(chunk)
            chunk = []
            result = runtime.run(source)
            if result.status == 'error':
                print(result.format_error(), file=sys.stderr)
                continue
            if result.value is not None:
                print(printer.pformat(result.value))

        except EOFError:
            print("\nExiting.")
            break


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExiting.")
