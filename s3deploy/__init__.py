"""s3deploy: publish CI build artifacts to S3 and announce them downstream.

One invocation per CI job:
  - resolve the run's configuration from the CI environment
  - reuse an artifact already built for the same commit
  - archive the build directory and upload it with derivative pointers
  - tag deploy-branch commits and send a deployment notice
"""

__version__ = "0.1.0"
__description__ = "Publish CI build artifacts to S3 with duplicate detection"

from s3deploy.core.pipeline import BuildPublisher
from s3deploy.core.resolver import resolve
from s3deploy.cli.app import app as cli

__all__ = ["BuildPublisher", "resolve", "cli", "__version__"]
