import argparse
import logging
import os
import sys
from datetime import datetime

from review_analysis import config
from review_analysis.report import build_report
from review_analysis.tokenizer import load_stop_words


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Exploratory report on restaurant reviews: ratings, sentiment and TF-IDF terms.")
    p.add_argument("--restaurants", default=config.RESTAURANTS_CSV, help="Restaurant metadata CSV (restaurant_id, name, ...).")
    p.add_argument("--reviews", default=config.REVIEWS_CSV, help="Reviews CSV (review_id, restaurant_id, text, rating[, date]).")
    p.add_argument("--outdir", default=config.OUTPUT_DIR, help="Directory to save charts, tables and report.md.")
    p.add_argument("--stop-words", default=config.STOP_WORDS_FILE,
                   help="Stop-word file, one word per line. Defaults to the NLTK English list.")
    p.add_argument("--top-k", type=int, default=config.TOP_K_TERMS, help="TF-IDF terms to keep per restaurant.")
    p.add_argument("--top-n", type=int, default=config.TOP_N_RESTAURANTS, help="Restaurants shown in ranking charts.")
    p.add_argument("--min-reviews", type=int, default=config.MIN_REVIEWS,
                   help="Minimum number of reviews for the top-rated chart.")
    p.add_argument("--log-level", default=config.LOG_LEVEL, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    # --- Log to a timestamped file in the output directory and to the console ---
    os.makedirs(args.outdir, exist_ok=True)
    current_timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = os.path.join(args.outdir, f"review_report_{current_timestamp}.log")
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format=config.LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_filename, mode='w', encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )
    # Font and backend chatter from the plotting stack
    logging.getLogger('matplotlib').setLevel(logging.WARNING)
    main_logger = logging.getLogger(__name__)

    main_logger.info(f"Starting review report at: {current_timestamp}")
    main_logger.info(f"Restaurants: {args.restaurants}")
    main_logger.info(f"Reviews: {args.reviews}")
    main_logger.info(f"Logs will be output to: {log_filename}")

    try:
        stop_words = load_stop_words(args.stop_words)
        outputs = build_report(
            args.restaurants,
            args.reviews,
            args.outdir,
            stop_words=stop_words,
            top_k=args.top_k,
            top_n=args.top_n,
            min_reviews=args.min_reviews,
        )
    except (FileNotFoundError, ValueError) as e:
        main_logger.error(f"Error: {e}")
        return 1

    main_logger.info(f"Done. Files saved under: {args.outdir}")
    for name in outputs:
        main_logger.info(f"- {name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
