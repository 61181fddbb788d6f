from datetime import date
import logging
from multiprocessing.pool import ThreadPool
import queue
from typing import Callable, Dict, List, Optional

from precondition.config import Config, ConfigError, parse_config
from precondition.partners import Partner, load_partners
from precondition.resolver import DateResolver, Resolution
from precondition.utils.aws_utils import S3Lister, TransportError
from precondition.utils.logconfig import configure_logging


def resolve_daap(config: Config, partners: List[Partner], lister_factory=S3Lister,
                 today: Optional[date] = None) -> Resolution:
    resolver = DateResolver(lister_factory(config.daap), partners, today, config.epoch)
    resolution = resolver.last_processed(config.daap.prefix)
    logging.debug(f"DaaP last processed {resolution.date}, last report seen {resolution.last_any_report}")
    return resolution


def resolve_cdw(config: Config, partners: List[Partner], lister_factory=S3Lister,
                today: Optional[date] = None) -> Resolution:
    resolver = DateResolver(lister_factory(config.cdw), partners, today, config.epoch)
    return resolver.last_available(config.cdw.prefix)


def run_concurrently(branches: Dict[str, Callable[[], Resolution]]) -> Dict[str, Resolution]:
    """
    Runs every branch on its own worker thread and returns only once all of them have
    finished, so no partial result is ever observable. The first branch to fail raises
    immediately without waiting on its siblings.
    """
    done = queue.Queue()
    pool = ThreadPool(processes=len(branches))
    try:
        for name, branch in branches.items():
            pool.apply_async(
                branch,
                callback=lambda result, name=name: done.put((name, result, None)),
                error_callback=lambda error, name=name: done.put((name, None, error)),
            )
    finally:
        pool.close()

    results = {}
    for _ in branches:
        name, result, error = done.get()
        if error is not None:
            logging.error(f"{name} resolution failed")
            pool.terminate()
            raise error
        results[name] = result
    pool.join()
    return results


def run(config: Config, partners: List[Partner], lister_factory=S3Lister, today: Optional[date] = None) -> str:
    """
    Returns the output line: "<found> <date>" for DaaP only mode, otherwise
    "<daap found> <daap date> <cdw found> <cdw date>".
    """
    if config.daap_only:
        resolver = DateResolver(lister_factory(config.daap), partners, today, config.epoch)
        return str(resolver.aggregates(config.daap.prefix))

    results = run_concurrently({
        "daap": lambda: resolve_daap(config, partners, lister_factory, today),
        "cdw": lambda: resolve_cdw(config, partners, lister_factory, today),
    })
    return f"{results['daap']} {results['cdw']}"


def main(argv=None) -> int:
    try:
        config = parse_config(argv)
    except ConfigError as e:
        configure_logging('INFO')
        logging.error(e)
        return 2

    configure_logging(config.log_level, config.log_file)
    logging.debug(f"Params provided: {config.describe()}")

    # both feeds scan back from the same startup day
    today = date.today()

    try:
        partners, _ = load_partners(config.partner_file)
        line = run(config, partners, today=today)
    except ConfigError as e:
        logging.error(e)
        return 2
    except TransportError as e:
        logging.error(e)
        return 1

    print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
