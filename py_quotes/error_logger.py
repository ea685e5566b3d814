"""
CSV log of quote lookups that returned nothing.
Codes that never resolve (typos, delisted instruments, unsupported
markets) pile up here and can be reviewed with failure_counts().
"""
import csv
import os
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List

HEADER = ["Timestamp", "Code", "Provider", "Reason"]


@dataclass
class FailedQuote:
    timestamp: str
    code: str
    provider: str
    reason: str


class QuoteErrorLogger:

    def __init__(self, output_dir: str, filename: str = "quote_errors.csv"):
        """
        Args:
            output_dir: Data directory; created on first use.
            filename: Log file name inside output_dir.
        """
        self.output_dir = output_dir
        self.filepath = os.path.join(output_dir, filename)
        if not os.path.exists(self.filepath):
            os.makedirs(output_dir, exist_ok=True)
            self._write_rows('w', [HEADER])

    def _write_rows(self, mode: str, rows: List[List[str]]) -> None:
        with open(self.filepath, mode, newline='', encoding='utf-8') as f:
            csv.writer(f).writerows(rows)

    def log_failure(self, code: str, provider: str, reason: str) -> None:
        # A reason spanning lines would split the record
        reason = " ".join(reason.split())
        self._write_rows('a', [[datetime.now().isoformat(timespec="seconds"), code, provider, reason]])

    def get_failures(self) -> List[FailedQuote]:
        if not os.path.exists(self.filepath):
            return []
        with open(self.filepath, 'r', encoding='utf-8') as f:
            return [
                FailedQuote(
                    timestamp=row["Timestamp"],
                    code=row["Code"],
                    provider=row["Provider"],
                    reason=row["Reason"] or "",
                )
                for row in csv.DictReader(f)
            ]

    def failure_counts(self) -> Dict[str, int]:
        """ code -> number of logged failures, most frequent first. """
        return dict(Counter(f.code for f in self.get_failures()).most_common())

    def clear_log(self) -> None:
        self._write_rows('w', [HEADER])
