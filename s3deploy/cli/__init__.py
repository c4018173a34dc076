"""s3deploy CLI: Typer-based command-line interface.

Provides the ``s3deploy`` command with subcommands for publishing a build,
checking for duplicates, syncing directories, verifying asset
fingerprints, sending deployment notices and writing the metadata record.

All output uses Rich for formatted terminal display.
"""
