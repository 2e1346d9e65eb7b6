import argparse
import json
import sys

from loguru import logger

from lotomania.config import get_settings, resolve_path, setup_logging


def generate_games_command(args):
    """Handles the 'generate' command."""
    logger.info("Received 'generate' command.")
    try:
        from lotomania.data_processor import load_history_corpus
        from lotomania.loader import get_draw_service
        from lotomania.models import ConfigurationError
        from lotomania.output_exporter import export_games
        from lotomania.play_generator import PlayGenerator

        settings = args.settings
        generator = PlayGenerator(
            load_history_corpus(resolve_path(settings.history_file), synthetic_size=settings.synthetic_history_size),
            settings=settings,
            seed=args.seed,
        )
        try:
            config = generator.parse_config({
                "numGames": args.num_games,
                "fixedNumbers": args.fixed,
                "mirrorBet": args.mirror,
                "closingStrategy": args.strategy,
                "targetConcurso": args.target,
            })
        except ConfigurationError as e:
            logger.error(f"Invalid configuration: {e}")
            sys.exit(1)

        reference = get_draw_service(settings).get_latest_result()
        batch = generator.generate_safe(config, reference)
        if batch.error:
            logger.error(batch.error)
            sys.exit(1)

        print(f"\n--- Analysis (reference contest {reference.concurso}) ---")
        print(batch.analysis)
        print("\n--- Generated Games ---")
        for index, game in enumerate(batch.games, start=1):
            print(f"{index:3d}: {', '.join(game)}")
        print("-----------------------\n")

        if args.export:
            path = export_games(batch, resolve_path(settings.output_dir))
            if path:
                print(f"Games exported to {path}")

    except Exception as e:
        logger.error(f"An error occurred during game generation: {e}")
        sys.exit(1)


def check_games_command(args):
    """Handles the 'check' command."""
    logger.info("Received 'check' command.")
    try:
        from lotomania.evaluator import Evaluator
        from lotomania.loader import get_draw_service
        from lotomania.output_exporter import export_report

        settings = args.settings
        if args.file:
            with open(args.file, "r", encoding="utf-8") as f:
                text = f.read()
        else:
            text = args.games or ""

        service = get_draw_service(settings)
        if args.concurso is None:
            draws = [service.get_latest_result()]
        elif args.concurso_end is None:
            draws = [service.get_result(args.concurso)]
        else:
            draws = service.get_results_range(args.concurso, args.concurso_end)

        evaluator = Evaluator(game_cost=settings.game_cost, currency_symbol=settings.currency_symbol)
        report = evaluator.check_text(text, draws)
        if not report.games_count:
            logger.error("No valid games to check.")
            sys.exit(1)

        print("\n--- Check Report ---")
        print(json.dumps(report.to_dict(settings.currency_symbol), indent=2, ensure_ascii=False))
        print("--------------------\n")

        if args.export:
            export_report(evaluator.report_to_dataframe(report), args.export)

    except Exception as e:
        logger.error(f"An error occurred while checking games: {e}")
        sys.exit(1)


def fetch_result_command(args):
    """Handles the 'fetch' command."""
    try:
        from lotomania.data_processor import append_draw_to_history
        from lotomania.loader import get_draw_service

        settings = args.settings
        service = get_draw_service(settings)
        draw = service.get_result(args.concurso) if args.concurso else service.get_latest_result()
        print(json.dumps(draw.to_dict(), indent=2, ensure_ascii=False))

        if args.save_history:
            total = append_draw_to_history(draw, resolve_path(settings.history_file))
            logger.info(f"History now holds {total} draws.")

    except Exception as e:
        logger.error(f"An error occurred while fetching the result: {e}")
        sys.exit(1)


def next_draw_command(args):
    """Handles the 'next-draw' command."""
    from lotomania.date_utils import DateManager

    info = DateManager.get_next_drawing_info()
    print(f"Next drawing: {info['next_drawing_date_br']} at {info['drawing_hour']}:00 ({info['timezone']})")


def serve_command(args):
    """Handles the 'serve' command."""
    import uvicorn

    logger.info(f"Starting API server on {args.host}:{args.port}")
    uvicorn.run("lotomania.api:app", host=args.host, port=args.port, reload=False)


def main(argv=None):
    """Main function to parse arguments and call the appropriate command."""
    parser = argparse.ArgumentParser(description="Lotomania Ultra - statistical game generator")
    parser.add_argument('--config', type=str, default=None, help="Path to config.ini.")
    parser.add_argument('--verbose', action='store_true', help="Debug output on the console.")
    subparsers = parser.add_subparsers(dest='command', help='Available commands', required=True)

    parser_generate = subparsers.add_parser('generate', help="Generate a batch of games.")
    parser_generate.add_argument('--num-games', type=str, default=None, help="Number of games (1-500).")
    parser_generate.add_argument('--fixed', type=str, default=None,
                                 help="Fixed numbers taken from the last draw (0-15).")
    parser_generate.add_argument('--mirror', action='store_true', help="Follow every game with its mirror.")
    parser_generate.add_argument('--strategy', type=str, default=None,
                                 help="Closing strategy: balanced, target_18 or target_20.")
    parser_generate.add_argument('--target', type=str, default=None, help="Target contest number.")
    parser_generate.add_argument('--seed', type=int, default=None, help="Random seed for reproducible runs.")
    parser_generate.add_argument('--export', action='store_true', help="Write the games to a .txt file.")
    parser_generate.set_defaults(func=generate_games_command)

    parser_check = subparsers.add_parser('check', help="Check games against official results.")
    source = parser_check.add_mutually_exclusive_group(required=True)
    source.add_argument('--file', type=str, help="Text file with one game per line.")
    source.add_argument('--games', type=str, help="Games as text, one game per line.")
    parser_check.add_argument('--concurso', type=int, default=None, help="Contest number (latest if omitted).")
    parser_check.add_argument('--concurso-end', type=int, default=None, help="Last contest of a range.")
    parser_check.add_argument('--export', type=str, default=None, help="Write the report to this CSV path.")
    parser_check.set_defaults(func=check_games_command)

    parser_fetch = subparsers.add_parser('fetch', help="Fetch an official result.")
    parser_fetch.add_argument('--concurso', type=int, default=None, help="Contest number (latest if omitted).")
    parser_fetch.add_argument('--save-history', action='store_true', help="Append the draw to the history CSV.")
    parser_fetch.set_defaults(func=fetch_result_command)

    parser_next = subparsers.add_parser('next-draw', help="Show the next drawing date.")
    parser_next.set_defaults(func=next_draw_command)

    parser_serve = subparsers.add_parser('serve', help="Run the HTTP API.")
    parser_serve.add_argument('--host', type=str, default="0.0.0.0")
    parser_serve.add_argument('--port', type=int, default=8000)
    parser_serve.set_defaults(func=serve_command)

    args = parser.parse_args(argv)
    args.settings = get_settings(args.config)
    setup_logging(args.settings.log_file, console_level="DEBUG" if args.verbose else "INFO")
    args.func(args)


if __name__ == "__main__":
    main()
