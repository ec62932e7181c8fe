# ABOUTME: topway package initialization
# ABOUTME: Exposes version information for the Railway workspace client

"""
topway - browse and manage a Railway workspace from Python.

=============================================================================
WHAT IS THIS PACKAGE?
=============================================================================

Railway is a hosting platform organised as:

    Workspace
    └── Project
        ├── Services       (one deployable app or container each)
        └── Environments   (production, staging, ...)

Each (project, environment, service) triple owns a set of environment
variables and a history of deployments. Railway exposes all of this through a
single GraphQL endpoint.

This package wraps that endpoint for a menu-bar style front end:

1. A thin async API client that builds GraphQL documents, posts them and
   decodes typed results.
2. An application state object that calls the client, keeps the last project
   listing, a busy flag and an error slot, and can poll for changes.

=============================================================================
PACKAGE STRUCTURE OVERVIEW
=============================================================================

topway/
├── __init__.py          <- YOU ARE HERE: Package entry point
├── config.py            <- Configuration (env vars, .env file, refresh interval)
├── state.py             <- AppState: the store, its operations and auto-refresh
├── app.py               <- Console entry point (`topway` command)
└── utils/
    ├── __init__.py      <- Utils subpackage marker
    ├── client.py        <- Async HTTP client for the Railway GraphQL API
    ├── graphql.py       <- GraphQL document builders and string escaping
    ├── models.py        <- Projects, services, environments, deployments
    ├── logging.py       <- Structured logging with audit trails
    └── safety.py        <- Configuration guard for remote operations
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
