import argparse
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional

EPOCH = date(2016, 1, 1)


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class FeedConfig:
    region: str
    bucket: str
    prefix: str
    access_key: Optional[str] = None
    secret_key: Optional[str] = field(default=None, repr=False)

    @property
    def static_credentials(self) -> bool:
        return bool(self.access_key and self.secret_key)


@dataclass(frozen=True)
class Config:
    """
    Immutable run configuration, built once at startup and handed to each component.
    daap is feed A (ambient credentials), cdw is feed B (static credentials).
    """

    daap: FeedConfig
    cdw: FeedConfig
    partner_file: str
    verbose: bool = False
    daap_only: bool = False
    epoch: date = EPOCH
    log_file: Optional[str] = None

    @property
    def log_level(self) -> str:
        return 'DEBUG' if self.verbose else 'INFO'

    def describe(self) -> str:
        masked_key = '***' if self.cdw.access_key else ''
        masked_secret = '***' if self.cdw.secret_key else ''
        return (
            f'-K {masked_key} -S {masked_secret} -b {self.cdw.bucket} -d {self.daap.bucket} '
            f'-dp {self.daap.prefix} -cp {self.cdw.prefix} -dr {self.daap.region} -cr {self.cdw.region} '
            f'-m {self.partner_file} -D {self.daap_only} --epoch {self.epoch.isoformat()} -v {self.verbose}'
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='precondition',
        description='Find the latest date with a complete set of partner reports on the DaaP and CDW feeds.',
    )
    parser.add_argument('-K', dest='cdw_access_key', default=os.environ.get('CDW_AWS_ACCESS_KEY_ID'),
                        help='AWS Access Key for CDW S3')
    parser.add_argument('-S', dest='cdw_secret_key', default=os.environ.get('CDW_AWS_SECRET_ACCESS_KEY'),
                        help='AWS Secret Key for CDW S3')
    parser.add_argument('-b', dest='cdw_bucket', default='rovi-cdw', help='CDW S3 bucket name')
    parser.add_argument('-d', dest='daap_bucket', default='daaprawcdwdata', help='DaaP S3 bucket name')
    parser.add_argument('-dp', dest='daap_prefix', default='hh_count2d', help='Prefix for DaaP S3 hh count bucket')
    parser.add_argument('-cp', dest='cdw_prefix', default='event/tv_viewership', help='Prefix for CDW S3 bucket')
    parser.add_argument('-dr', dest='daap_region', default='us-west-2', help='DaaP S3 region')
    parser.add_argument('-cr', dest='cdw_region', default='us-east-1', help='CDW S3 region')
    parser.add_argument('-m', dest='partner_file', default='mso-list.csv', metavar='MSO',
                        help='Filename for MSO list')
    parser.add_argument('-v', dest='verbose', action='store_true', help='Verbose')
    parser.add_argument('-D', dest='daap_only', action='store_true', help='Check only DaaP aggregated reports date')
    parser.add_argument('--epoch', default=EPOCH.isoformat(),
                        help='Earliest date (YYYY-MM-DD) the backward scan stops at')
    parser.add_argument('--log-file', default=None, help='Also write logs to this file')
    return parser


def parse_config(argv: Optional[Iterable[str]] = None) -> Config:
    args = build_parser().parse_args(argv)

    try:
        epoch = datetime.strptime(args.epoch, '%Y-%m-%d').date()
    except ValueError:
        raise ConfigError(f'Unable to parse epoch {args.epoch}, expected YYYY-MM-DD')

    if not args.daap_only and not (args.cdw_access_key and args.cdw_secret_key):
        raise ConfigError('CDW access and secret keys are required unless checking DaaP only (-D)')

    daap = FeedConfig(region=args.daap_region, bucket=args.daap_bucket, prefix=args.daap_prefix)
    cdw = FeedConfig(
        region=args.cdw_region,
        bucket=args.cdw_bucket,
        prefix=args.cdw_prefix,
        access_key=args.cdw_access_key,
        secret_key=args.cdw_secret_key,
    )
    return Config(
        daap=daap,
        cdw=cdw,
        partner_file=args.partner_file,
        verbose=args.verbose,
        daap_only=args.daap_only,
        epoch=epoch,
        log_file=args.log_file,
    )
