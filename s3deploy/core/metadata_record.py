"""The ``.s3d`` metadata record written into the build before archiving."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from s3deploy.models.config import ResolvedConfig
from s3deploy.models.descriptor import MetadataRecord

logger = logging.getLogger(__name__)


def build_metadata_record(config: ResolvedConfig, now: datetime) -> MetadataRecord:
    ctx = config.context
    return MetadataRecord(
        repo_url=ctx.repo_url,
        repo_owner=ctx.repo_owner,
        repo_name=ctx.repo_name,
        repo_slug=ctx.repo_slug,
        revision=ctx.commit,
        branch=ctx.branch,
        build_number=ctx.build_number,
        pull_request=ctx.pull_request,
        s3_prefix=config.primary.prefix_uri,
        timestamp=int(now.timestamp()),
    )


def write_metadata_record(config: ResolvedConfig, now: datetime) -> Path:
    """Write the record to ``<build_dir>/<metadata_file>`` and return its path."""
    record = build_metadata_record(config, now)
    path = Path(config.build_dir) / config.metadata_file
    path.write_text(json.dumps(record.model_dump(mode="json"), indent=2, sort_keys=True))
    logger.info("Wrote metadata record %s", path)
    return path
