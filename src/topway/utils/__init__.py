# ABOUTME: Utilities package initialization for topway
# ABOUTME: Contains the API client, GraphQL documents, models, logging and guards

"""
topway Utilities Package

Shared utilities:
    - client.py: Railway GraphQL API client and error classes
    - graphql.py: Query/mutation documents with escaped parameters
    - models.py: Project, Service, Environment, EnvironmentVariable, Deployment
    - logging.py: Structured logging with correlation IDs and audit trail
    - safety.py: Configuration guard for remote operations
"""
