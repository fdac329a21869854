"""
BlobSAS Blob Storage Collaborators

Interfaces for the blob store and stored policy registry the issuer
consumes (interface), plus an in-memory implementation of both (backend).

Author: BlobSAS Team
Date: 2026-10-18
"""
