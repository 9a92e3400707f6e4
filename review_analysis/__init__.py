"""
Exploratory analysis of restaurant reviews: ratings, sentiment and
distinctive review terms (TF-IDF) per restaurant.
"""

__version__ = "0.1.0"
