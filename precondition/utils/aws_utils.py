from dataclasses import dataclass
import logging
from typing import List

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from precondition.config import FeedConfig


class TransportError(Exception):
    pass


@dataclass(frozen=True)
class StorageObject:
    key: str
    size: int


class S3Lister:
    """
    Lists objects for a single feed. Feeds with static credentials (CDW) get a session
    built from those keys; otherwise the ambient credential chain is used (DaaP).
    """

    def __init__(self, feed: FeedConfig) -> None:
        self.feed = feed
        try:
            if feed.static_credentials:
                self._session = boto3.Session(aws_access_key_id=feed.access_key,
                                              aws_secret_access_key=feed.secret_key,
                                              region_name=feed.region)
            else:
                self._session = boto3.Session(region_name=feed.region)
            self._client = self._session.client('s3')
        except (BotoCoreError, ClientError) as e:
            raise TransportError(f'Unable to set up S3 client for {feed.bucket} in {feed.region}: {e}') from e

    def list_objects(self, prefix: str) -> List[StorageObject]:
        """
        Returns every object under s3://bucket/prefix, following all result pages.
        """
        logging.debug(f'region: {self.feed.region}, bucket: {self.feed.bucket}, prefix: {prefix}')

        objects = []
        paginator = self._client.get_paginator('list_objects_v2')
        try:
            for page in paginator.paginate(Bucket=self.feed.bucket, Prefix=prefix):
                for obj in page.get('Contents', []):
                    objects.append(StorageObject(obj['Key'], obj['Size']))
        except (BotoCoreError, ClientError) as e:
            raise TransportError(f'Failed to list objects in s3://{self.feed.bucket}/{prefix}: {e}') from e

        logging.info(f'Number of objects: {len(objects)}')
        return objects
