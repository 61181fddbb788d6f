from dataclasses import dataclass, replace
from datetime import date, timedelta
import logging
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from precondition.config import EPOCH
from precondition.partners import Partner
from precondition.utils.aws_utils import StorageObject

AGGREGATE_MARKER: str = "viewership-report-"
# Delta objects at or below this size are empty placeholders
MIN_DELTA_SIZE: int = 14
ANY_REPORT_OFFSET: timedelta = timedelta(days=2)
ONE_DAY: timedelta = timedelta(days=1)


@dataclass(frozen=True)
class Resolution:
    found: bool
    date: str
    last_any_report: Optional[str] = None

    def __str__(self) -> str:
        return f"{str(self.found).lower()} {self.date}"


def date_prefix(day: date) -> str:
    return day.strftime("%Y%m%d")


def format_date(day: date) -> str:
    return day.isoformat()


def scan_backward(check: Callable[[date], Optional[date]], start: date, epoch: date = EPOCH) -> Resolution:
    """
    Walks the calendar backward one day at a time from start. check returns the day to
    report when the candidate day is complete, or None to keep going. The epoch day
    itself is never checked: reaching it ends the scan with found=False.
    """
    day = start
    while day > epoch:
        resolved = check(day)
        if resolved is not None:
            return Resolution(True, format_date(resolved))
        day -= ONE_DAY
    return Resolution(False, format_date(day))


def aggregate_complete(objects: Sequence[StorageObject], partners: Sequence[Partner]) -> bool:
    return len(objects) == len(partners)


def partner_reports_complete(
    objects: Sequence[StorageObject], partners: Sequence[Partner]
) -> Tuple[bool, bool]:
    """
    A day holds one report per partner, plus an optional aggregate report.
    Every partner name found inside a non-aggregate key counts as a match, so the
    object count is the primary signal and name matching only confirms it.

    Returns (complete, with_aggregate).
    """
    if len(objects) not in (len(partners), len(partners) + 1):
        return False, False

    with_aggregate = False
    matches = 0
    for obj in objects:
        logging.debug(f"Key: {obj.key}")
        if AGGREGATE_MARKER in obj.key:
            with_aggregate = True
            continue
        matches += sum(1 for partner in partners if partner.name in obj.key)

    return matches == len(partners), with_aggregate


def delta_present(objects: Iterable[StorageObject], day: date) -> bool:
    token = f"_{date_prefix(day)}"
    for obj in objects:
        logging.debug(f"Key: {obj.key}")
        if token in obj.key and obj.size > MIN_DELTA_SIZE:
            return True
    return False


class DateResolver:
    """
    Finds the latest day a feed satisfies a completeness predicate. The scan starts
    at start (today) and walks backward to the epoch bound. Each method call runs its
    own independent scan; nothing is cached between calls.

    lister is anything with list_objects(prefix) -> List[StorageObject]; listing
    errors propagate to the caller unchanged.
    """

    def __init__(self, lister, partners: List[Partner], start: Optional[date] = None, epoch: date = EPOCH):
        if not partners:
            raise ValueError("DateResolver needs at least one partner")
        self.lister = lister
        self.partners = partners
        self.start = start or date.today()
        self.epoch = epoch

    def _list_day(self, prefix: str, day: date) -> List[StorageObject]:
        day_prefix = f"{prefix}/{date_prefix(day)}"
        logging.debug(f"Prefix: {day_prefix}")
        return self.lister.list_objects(day_prefix)

    def aggregates(self, prefix: str) -> Resolution:
        """
        Latest day where the number of objects under prefix/YYYYMMDD equals the partner count.
        """

        def check(day: date) -> Optional[date]:
            objects = self._list_day(prefix, day)
            return day if aggregate_complete(objects, self.partners) else None

        return scan_backward(check, self.start, self.epoch)

    def last_processed(self, prefix: str) -> Resolution:
        """
        Latest day with a report for every partner. If that day also carries the
        aggregate report the load finished, so processing resumes the day after.

        last_any_report is the first day scanned with any object at all, less two days.
        It is diagnostic only.
        """
        last_any_report = None

        def check(day: date) -> Optional[date]:
            nonlocal last_any_report
            objects = self._list_day(prefix, day)

            if last_any_report is None and objects:
                last_any_report = format_date(day - ANY_REPORT_OFFSET)

            complete, with_aggregate = partner_reports_complete(objects, self.partners)
            if not complete:
                return None
            return day + ONE_DAY if with_aggregate else day

        resolution = scan_backward(check, self.start, self.epoch)
        return replace(resolution, last_any_report=last_any_report)

    def last_available(self, prefix: str) -> Resolution:
        """
        Latest day where every partner has a non-empty delta file tagged _YYYYMMDD
        under prefix/<code>/delta. Costs one listing per partner per candidate day.
        """

        def check(day: date) -> Optional[date]:
            present = 0
            for partner in self.partners:
                objects = self.lister.list_objects(f"{prefix}/{partner.code}/delta")
                if delta_present(objects, day):
                    present += 1
                else:
                    logging.debug(f"No delta for {partner.code} ({partner.name}) on {format_date(day)}")
            return day if present == len(self.partners) else None

        return scan_backward(check, self.start, self.epoch)
