"""
Tuning Configuration for the Recommendation Engine

All scoring knobs and blend factors are centralized here.
The fusion weights and the algorithm weights are two separate tables:
fusion weights blend scorer outputs, algorithm weights are only exposed
through the service getter.
"""

TUNING_CONFIG = {
    # ==========================================================================
    # FUSION (hybrid blend of the three scorers, must sum to 1.0)
    # ==========================================================================
    "fusion_weights": {
        "collaborative": 0.4,
        "content-based": 0.4,
        "popularity": 0.2
    },

    # Each scorer is asked for limit * multiplier candidates before blending
    "candidate_multiplier": 2,

    # ==========================================================================
    # ALGORITHM WEIGHTS (general-purpose getter, not used by fusion)
    # ==========================================================================
    "algorithm_weights": {
        "collaborative": 0.4,
        "content-based": 0.3,
        "hybrid": 0.2,
        "popularity": 0.1
    },

    # ==========================================================================
    # CONTENT-BASED SCORING
    # ==========================================================================
    "content_based": {
        "category_weight": 0.4,
        "brand_weight": 0.3,
        "price_weight": 0.2,
        "style_weight": 0.1,
        "partial_match_factor": 0.5,   # Substring match gets half the weight
        "style_placeholder": 0.5,      # Style preferences are not modelled yet
        "reason_threshold": 0.5        # Sub-score needed to mention it in the reason
    },

    # ==========================================================================
    # USER PROFILE
    # ==========================================================================
    "user_profile": {
        "default_price_min": 0.0,
        "default_price_max": 10000.0,
        "positive_rating": 4
    },

    # ==========================================================================
    # SIMILAR USERS (collaborative neighbourhood)
    # ==========================================================================
    "similarity": {
        "min_shared_products": 2,
        "min_weighted_score": 0.2,
        "like_weight": 1.0,
        "favorite_weight": 1.2,
        "high_rating_weight": 1.0,     # rating >= 4
        "mid_rating_weight": 0.5,      # rating >= 3
        "other_weight": 0.1
    },

    # ==========================================================================
    # POPULARITY
    # ==========================================================================
    "popularity": {
        "count_normalizer": 10         # score = min(count / normalizer, 1)
    },

    # ==========================================================================
    # CONFIDENCE BANDS
    # ==========================================================================
    "confidence": {
        "high": 0.8,
        "medium": 0.5
    }
}


def get_config(path: str = None):
    """
    Get configuration value by dot-notation path.

    Example:
        get_config("fusion_weights.popularity")  # Returns 0.2
        get_config("content_based.brand_weight")  # Returns 0.3
    """
    if path is None:
        return TUNING_CONFIG

    keys = path.split(".")
    value = TUNING_CONFIG
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            raise KeyError(f"Config path not found: {path}")
    return value
