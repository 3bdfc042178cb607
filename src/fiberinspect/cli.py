"""
Command-line interface for Fiber Inspect.

Provides commands for analyzing images, showing stored results and writing
the default configuration.
"""

import argparse
import sys

from fiberinspect.config import save_default_config
from fiberinspect.tracer import configure_tracer, get_tracer


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Fiber Inspect: pass/fail inspection of optical fiber endface images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    
    # Run command
    run_parser = subparsers.add_parser("run", help="Analyze fiber endface images")
    run_parser.add_argument(
        "--inputs", "-i",
        nargs="+",
        required=True,
        help="Input image files",
    )
    run_parser.add_argument(
        "--out", "-o",
        required=True,
        help="Output directory",
    )
    run_parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    run_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug artifact generation",
    )
    run_parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable runtime tracing",
    )
    run_parser.add_argument(
        "--trace-level",
        default="INFO",
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    run_parser.add_argument(
        "--trace-file",
        default=None,
        help="Path to write trace logs",
    )
    run_parser.add_argument(
        "--trace-json",
        action="store_true",
        help="Enable JSON trace output",
    )
    
    # Show command
    show_parser = subparsers.add_parser("show", help="Print the summary of a stored result")
    show_parser.add_argument(
        "--result", "-r",
        required=True,
        help="Path to a result JSON file",
    )
    
    # Init config command
    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="fiberinspect_config.yaml",
        help="Output path for config file",
    )
    
    args = parser.parse_args(argv)
    
    if args.command is None:
        parser.print_help()
        return 0
    
    if args.command == "run":
        return handle_run(args)
    elif args.command == "show":
        return handle_show(args)
    elif args.command == "init-config":
        return handle_init_config(args)
    
    return 0


def handle_run(args):
    """Handle the run command."""
    from fiberinspect.config import load_config
    
    tracer = get_tracer()
    
    try:
        config = load_config(args.config)
        
        # Command line flags override the config file
        configure_tracer(
            enabled=args.trace or config.tracing.enabled,
            level=args.trace_level if args.trace else config.tracing.level,
            file_path=args.trace_file or config.tracing.file_path,
            json_output=args.trace_json or config.tracing.json_output,
        )
        
        from fiberinspect.pipeline import run_pipeline
        
        with tracer.span("cli_run", module="cli"):
            results = run_pipeline(
                input_paths=args.inputs,
                out_dir=args.out,
                config=config,
                debug=args.debug,
            )
        
        print(f"\nAnalysis completed.")
        for path, result in zip(args.inputs, results):
            status = "PASS" if result.is_acceptable else "FAIL"
            print(f"  [{status}] {path}: quality={result.overall_quality:.2f}, "
                  f"defects={len(result.defects)}")
        print(f"\nOutputs saved to: {args.out}/")
        
        rejected = sum(1 for r in results if not r.is_acceptable)
        if rejected:
            print(f"\n[!] {rejected} fiber(s) rejected. Review the result files.")
            return 1
        
        return 0
        
    except Exception as e:
        tracer.event(f"Run failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1
    finally:
        get_tracer().config.close()


def handle_show(args):
    """Handle the show command."""
    from fiberinspect.export.result_json import load_result
    
    try:
        result = load_result(args.result)
    except (OSError, ValueError) as e:
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1
    
    print(result.summary, end="" if result.summary.endswith("\n") else "\n")
    return 0


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
