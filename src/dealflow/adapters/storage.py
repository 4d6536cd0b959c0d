from pathlib import Path

import pandas as pd

_READERS = {
    ".csv": pd.read_csv,
    ".parquet": pd.read_parquet,
    ".json": lambda p: pd.read_json(p, orient="records"),
    ".jsonl": lambda p: pd.read_json(p, lines=True),
}


def read_properties(path: str) -> pd.DataFrame:
    """
    Load a batch of properties (one row each) for comparison.
    Column names are stripped; rows with every cell empty are dropped.
    """
    suffix = Path(path).suffix.lower()
    reader = _READERS.get(suffix)
    if reader is None:
        raise ValueError(f"Unsupported properties file: {path} (expected one of {sorted(_READERS)})")

    df = reader(path)
    df.columns = [str(c).strip() for c in df.columns]
    return df.dropna(how="all").reset_index(drop=True)


def write_ranking(df: pd.DataFrame, path: str) -> None:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    suffix = out.suffix.lower()
    if suffix == ".parquet":
        df.to_parquet(out, index=False)
    elif suffix == ".json":
        df.to_json(out, orient="records", indent=2)
    elif suffix == ".jsonl":
        df.to_json(out, orient="records", lines=True)
    else:
        df.to_csv(out, index=False)
