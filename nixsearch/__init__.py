"""
Channel search importer.

This package is responsible for:
* Resolving the newest evaluation of a channel from the release bucket.
* Extracting package and option metadata with the Nix tools.
* Recreating the channel's search indices and bulk loading the documents.
"""
