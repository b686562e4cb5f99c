import os

import pandas as pd

from program_links import TIER_ORDER, normalize_subject

PROGRAM_URLS_FILE = "program_urls.csv"
BACHELORS_PROGRAMS_FILE = "mdc_bachelors_programs.csv"

_TIER_ALIASES = {
    "bachelor": "bachelor",
    "bachelors": "bachelor",
    "bs": "bachelor",
    "associate_arts": "associate_arts",
    "aa": "associate_arts",
    "associate_science": "associate_science",
    "as": "associate_science",
}


def _normalize_tier(raw) -> str:
    key = str(raw or "").strip().lower().replace(" ", "_").replace(".", "")
    return _TIER_ALIASES.get(key, "")


def _normalize_program_urls_df(df: pd.DataFrame) -> pd.DataFrame:
    """Clean the tier/subject/slug table; rows with an unknown tier or empty cells are dropped."""
    df = df.copy()
    missing = {"tier", "subject", "slug"} - set(df.columns)
    if missing:
        raise ValueError(f"{PROGRAM_URLS_FILE} is missing columns: {sorted(missing)}")

    df["tier"] = df["tier"].apply(_normalize_tier)
    df["subject"] = df["subject"].fillna("").astype(str).apply(normalize_subject)
    df["slug"] = df["slug"].fillna("").astype(str).str.strip().str.strip("/")
    df = df[(df["tier"] != "") & (df["subject"] != "") & (df["slug"] != "")]
    # A later duplicate of (tier, subject) never overrides the first one.
    return df.drop_duplicates(subset=["tier", "subject"], keep="first")


def _build_url_tables(df: pd.DataFrame) -> dict:
    tables = {tier: {} for tier in TIER_ORDER}
    for _, row in df.iterrows():
        tables[row["tier"]][row["subject"]] = row["slug"]
    return tables


def _load_bachelors_programs(path: str) -> list[str]:
    if not os.path.exists(path):
        return []
    df = pd.read_csv(path)
    if "program_name" not in df.columns:
        raise ValueError(f"{BACHELORS_PROGRAMS_FILE} is missing column 'program_name'")
    names = df["program_name"].dropna().astype(str).str.strip()
    return [n for n in names.tolist() if n]


def load_program_catalog(data_path: str) -> dict:
    """
    Load the read-only program tables from data_path (a directory of CSVs).

    Returns:
      {
        "url_tables": {"bachelor": {...}, "associate_arts": {...}, "associate_science": {...}},
        "bachelors_programs": ["Bachelor of Science in Nursing", ...],
        "entry_count": 32,
      }

    Raises FileNotFoundError when the URL table is missing and ValueError on
    schema problems.
    """
    urls_path = os.path.join(data_path, PROGRAM_URLS_FILE)
    if not os.path.isfile(urls_path):
        raise FileNotFoundError(urls_path)

    urls_df = _normalize_program_urls_df(pd.read_csv(urls_path))
    return {
        "url_tables": _build_url_tables(urls_df),
        "bachelors_programs": _load_bachelors_programs(os.path.join(data_path, BACHELORS_PROGRAMS_FILE)),
        "entry_count": int(len(urls_df)),
    }
