"""
Export Module for Lotomania Ultra.

Writes generated games as plain text (one game per line, comma-separated
zero-padded numbers) and checker reports as CSV. The text format is the
same one the game checker parses.
"""
import os
from datetime import datetime
from typing import List, Optional, Sequence

import pandas as pd
from loguru import logger

from lotomania.config import OUTPUT_DIR
from lotomania.models import GeneratedBatch

GAMES_FILENAME_PREFIX = "jogos-lotomania-ultra"


def format_games_text(games: Sequence[Sequence[str]]) -> str:
    return "\n".join(", ".join(game) for game in games)


def export_games(batch: GeneratedBatch, output_dir: str = OUTPUT_DIR, filename: Optional[str] = None) -> str:
    """
    Writes the batch's games to a .txt file.

    Args:
        batch (GeneratedBatch): The generated batch.
        output_dir (str): Directory for the file; created if missing.
        filename (Optional[str]): File name. Defaults to a timestamped name.

    Returns:
        str: The path of the written file, or "" when there was nothing to
             write or the write failed.
    """
    if not batch.games:
        logger.warning("No games to export.")
        return ""

    if filename is None:
        timestamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
        filename = f"{GAMES_FILENAME_PREFIX}_{timestamp}.txt"
    output_path = os.path.join(output_dir, filename)

    try:
        os.makedirs(output_dir, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(format_games_text(batch.games))
            f.write("\n")
        logger.info(f"{len(batch.games)} games exported to {output_path}")
        return output_path
    except IOError as e:
        logger.error(f"Error writing the output file: {e}")
        return ""


def export_report(report_df: pd.DataFrame, output_path: str) -> str:
    """Writes a checker report DataFrame to CSV. Returns the path or ""."""
    if report_df.empty:
        logger.warning("Report is empty, nothing to export.")
        return ""
    try:
        directory = os.path.dirname(output_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        report_df.to_csv(output_path, index=False)
        logger.info(f"Check report exported to {output_path}")
        return output_path
    except IOError as e:
        logger.error(f"Error writing the report file: {e}")
        return ""
