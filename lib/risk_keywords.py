# =============================================================================
# lib/risk_keywords.py - Default Risk Scoring Table
# =============================================================================
# Default configuration data for lib/risk_scorer.py.
#
# Keywords are Japanese as written by the registry's members and are matched
# as plain, case-sensitive substrings of the narrative text. Point values
# span roughly three orders of magnitude so a single severe keyword always
# outranks any pile of minor ones.
#
# To tune or localize without touching code, point RISK_SCORING_FILE at a
# JSON document of the same shape:
#   {"keyword_scores": {"横領": 530000, ...},
#    "tier_thresholds": {"2": 1000, "3": 10000, "4": 100000, "5": 530000}}
# =============================================================================

DEFAULT_KEYWORD_SCORES: dict[str, int] = {
    # Severe: embezzlement, arrest
    "横領": 530000,
    "着服": 530000,
    "逮捕": 530000,
    # High: violence, extortion
    "暴行": 120000,
    "傷害": 120000,
    "恐喝": 100000,
    # Moderate: fraud, theft, data leaks
    "詐欺": 80000,
    "窃盗": 60000,
    "情報漏洩": 50000,
    # Elevated: walking off the job, harassment
    "無断欠勤": 18000,
    "バックレ": 18000,
    "飛んだ": 18000,
    "パワハラ": 15000,
    "セクハラ": 15000,
    # Minor: drinking, lateness, disputes, dishonesty
    "酒": 4000,
    "飲酒": 4000,
    "遅刻": 1500,
    "口論": 1200,
    "サボり": 1000,
    "虚偽": 3000,
    "嘘": 3000,
}

# Minimum score (inclusive) for each tier above "safe".
DEFAULT_TIER_THRESHOLDS: dict[int, int] = {
    2: 1000,
    3: 10000,
    4: 100000,
    5: 530000,
}
