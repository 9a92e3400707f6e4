import os
from dotenv import load_dotenv

load_dotenv()

# --- Input / output paths ---
RESTAURANTS_CSV = os.environ.get("REVIEW_EDA_RESTAURANTS_CSV", os.path.join("data", "sample", "restaurants.csv"))
REVIEWS_CSV = os.environ.get("REVIEW_EDA_REVIEWS_CSV", os.path.join("data", "sample", "reviews.csv"))
OUTPUT_DIR = os.environ.get("REVIEW_EDA_OUTPUT_DIR", "report_output")

# One word per line; when unset the NLTK English stop-word list is used
STOP_WORDS_FILE = os.environ.get("REVIEW_EDA_STOP_WORDS_FILE") or None

# --- Report sizes ---
TOP_K_TERMS = int(os.environ.get("REVIEW_EDA_TOP_K_TERMS", "10"))
TOP_N_RESTAURANTS = int(os.environ.get("REVIEW_EDA_TOP_N_RESTAURANTS", "10"))
MIN_REVIEWS = int(os.environ.get("REVIEW_EDA_MIN_REVIEWS", "3"))

# --- Sentiment label thresholds (VADER compound score) ---
POSITIVE_THRESHOLD = 0.05
NEGATIVE_THRESHOLD = -0.05

# --- Logging ---
LOG_LEVEL = os.environ.get("REVIEW_EDA_LOG_LEVEL", "INFO")
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
