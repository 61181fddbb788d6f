from dataclasses import dataclass
import logging
from typing import Dict, List, Tuple

import pandas as pd

from precondition.config import ConfigError


@dataclass(frozen=True)
class Partner:
    code: str
    name: str


def load_partners(path: str) -> Tuple[List[Partner], Dict[str, str]]:
    """
    Reads the two-column (code, display name) partner file. There is no header row.
    Returns the partners in file order and a code -> name lookup.

    Any malformed row aborts the load: a partial partner set would make every
    completeness check downstream wrong.
    """
    try:
        df = pd.read_csv(path, header=None, dtype=str, skipinitialspace=True, keep_default_na=False)
    except (OSError, UnicodeDecodeError, pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise ConfigError(f'Could not read partner list file {path}: {e}')

    if df.shape[1] < 2:
        raise ConfigError(f'Partner list file {path} must have a code and a name column')

    pairs = df.iloc[:, :2]
    if pairs.isna().any().any() or (pairs == '').any().any():
        raise ConfigError(f'Partner list file {path} has rows missing a code or a name')

    partners = [Partner(code, name) for code, name in pairs.itertuples(index=False, name=None)]
    if not partners:
        raise ConfigError(f'Partner list file {path} is empty')

    lookup = {partner.code: partner.name for partner in partners}
    logging.debug(f'Loaded {len(partners)} partners from {path}')
    return partners, lookup
