import argparse
import os
import sys
from bf2piet.compiler import compile_file, INSTRUCTIONS
from bf2piet.encoder import DELTAS
from bf2piet.errors import ConfigError, TranslationError
from bf2piet.interpreter import Simulator


def positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {text!r}")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Brainfuck to Piet translator")
    sub = p.add_subparsers(dest="cmd")

    c_compile = sub.add_parser("compile", help="Translate a Brainfuck file into a Piet PNG")
    c_compile.add_argument("src", help="Brainfuck source file ('-' reads stdin)")
    c_compile.add_argument("out", nargs="?", help="Output PNG file (optional). Defaults to <src>.png next to source")
    c_compile.add_argument("--codel-size", "-c", type=positive_int, default=8, help="Pixels per codel (default 8)")

    c_run = sub.add_parser("run", help="Execute a Piet image")
    c_run.add_argument("program", help="Piet PNG file")
    c_run.add_argument("--codel-size", "-c", type=positive_int, default=8, help="Pixels per codel (default 8)")
    c_run.add_argument("--input", "-i", default="", help="Text fed to the program's input")
    c_run.add_argument("--trace", action="store_true", help="Print the last steps of the execution trace")
    c_run.add_argument("--max-steps", type=positive_int, default=1000000, help="Abort after this many steps")

    sub.add_parser("available", help="Show the Brainfuck instructions and Piet operations supported by the tool")
    return p


def cli(argv=None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    if args.cmd == "compile":
        if args.out:
            out_path = args.out
        elif args.src == "-":
            out_path = "out.png"
        else:
            out_path = os.path.splitext(args.src)[0] + ".png"
        try:
            grid = compile_file(args.src, out_path, args.codel_size)
        except ConfigError as e:
            p.error(str(e))
        except TranslationError as e:
            print(f"Translation failed: {e}", file=sys.stderr)
            return 1
        except OSError as e:
            print(f"I/O error: {e}", file=sys.stderr)
            return 1
        print(f"Wrote Piet image to {out_path} ({grid.width}x{grid.height + 1} codels)")
    elif args.cmd == "available":
        print("Supported Brainfuck instructions:")
        for sym, name in INSTRUCTIONS.items():
            print(f"- {sym}  {name}")
        print("Piet operations:")
        for op in DELTAS:
            print("-", op)
    elif args.cmd == "run":
        sim = Simulator(codel_size=args.codel_size)
        try:
            sim.load_image(args.program)
        except OSError as e:
            print(f"I/O error: {e}", file=sys.stderr)
            return 1
        stdin = args.input.encode("utf-8")
        try:
            if args.trace:
                out, logs = sim.trace_run(stdin, max_steps=args.max_steps)
                print("\n".join(logs[-20:]))
            else:
                out = sim.run(stdin, max_steps=args.max_steps)
        except RuntimeError as e:
            print(f"Runtime error: {e}", file=sys.stderr)
            return 1

        print("Output (bytes):", list(out))
        if out:
            # printable view, '?' for everything else
            print("Output (chars):", "".join(chr(b) if 32 <= b <= 126 or b == 10 else "?" for b in out))
    else:
        p.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(cli())
