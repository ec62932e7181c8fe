# ABOUTME: GraphQL document builders for the Railway public API
# ABOUTME: Renders every interpolated parameter as an escaped string literal

r"""
GraphQL documents for every Railway operation topway performs.

=============================================================================
WHY INLINE PARAMETERS?
=============================================================================

The request body is always {"query": "<document>"}: no GraphQL variables are
sent, parameters are written straight into the document text. That keeps the
wire format identical for every operation, but it means each parameter must
be a valid GraphQL string literal.

GraphQL string escapes are a subset of JSON's:

    \"  \\  \/  \b  \f  \n  \r  \t  \uXXXX

so json.dumps() of a Python str is always a correct GraphQL string literal.
Every builder below passes every parameter through literal(), including ids,
so a project name or variable value containing quotes or newlines cannot break
out of its string.

    >>> literal('say "hi"\n')
    '"say \\"hi\\"\\n"'
"""

from __future__ import annotations

import json

# Railway returns at most this many deployments; there is no cursor support.
DEPLOYMENTS_PAGE_SIZE = 10


def literal(value: str) -> str:
    """Render a Python string as a quoted, escaped GraphQL string literal."""
    return json.dumps(value, ensure_ascii=False)


# =============================================================================
# QUERIES
# =============================================================================


def projects_query(workspace_id: str) -> str:
    return f"""
query Projects {{
  workspace(workspaceId: {literal(workspace_id)}) {{
    projects {{
      edges {{
        node {{
          id
          name
          services {{
            edges {{
              node {{
                id
                name
              }}
            }}
          }}
          environments {{
            edges {{
              node {{
                id
                name
              }}
            }}
          }}
        }}
      }}
    }}
  }}
}}
"""


def variables_query(project_id: str, environment_id: str, service_id: str) -> str:
    return f"""
query variables {{
  variables(
    projectId: {literal(project_id)}
    environmentId: {literal(environment_id)}
    serviceId: {literal(service_id)}
  )
}}
"""


def deployments_query(project_id: str, environment_id: str, service_id: str) -> str:
    return f"""
query deployments {{
  deployments(
    first: {DEPLOYMENTS_PAGE_SIZE}
    input: {{
      projectId: {literal(project_id)}
      environmentId: {literal(environment_id)}
      serviceId: {literal(service_id)}
    }}
  ) {{
    edges {{
      node {{
        id
        status
        staticUrl
        createdAt
      }}
    }}
  }}
}}
"""


# =============================================================================
# MUTATIONS
# =============================================================================


def service_create_mutation(
    project_id: str,
    *,
    repo: str | None = None,
    image: str | None = None,
) -> str:
    """
    Build serviceCreate for either a GitHub repo or a Docker image source.

    Exactly one of repo/image must be given; the two variants differ only in
    the `source` sub-object.
    """
    if repo is not None and image is None:
        source = f"repo: {literal(repo)}"
    elif image is not None and repo is None:
        source = f"image: {literal(image)}"
    else:
        raise ValueError("exactly one of repo or image is required")
    return f"""
mutation serviceCreate {{
  serviceCreate(
    input: {{
      projectId: {literal(project_id)}
      source: {{ {source} }}
    }}
  ) {{
    id
  }}
}}
"""


def project_delete_mutation(project_id: str) -> str:
    return f"""
mutation projectDelete {{
  projectDelete(id: {literal(project_id)})
}}
"""


def variable_upsert_mutation(
    project_id: str,
    environment_id: str,
    service_id: str,
    name: str,
    value: str,
) -> str:
    return f"""
mutation variableUpsert {{
  variableUpsert(
    input: {{
      projectId: {literal(project_id)}
      environmentId: {literal(environment_id)}
      serviceId: {literal(service_id)}
      name: {literal(name)}
      value: {literal(value)}
    }}
  )
}}
"""


def variable_delete_mutation(
    project_id: str,
    environment_id: str,
    service_id: str,
    name: str,
) -> str:
    return f"""
mutation variableDelete {{
  variableDelete(
    input: {{
      projectId: {literal(project_id)}
      environmentId: {literal(environment_id)}
      serviceId: {literal(service_id)}
      name: {literal(name)}
    }}
  )
}}
"""


def service_delete_mutation(service_id: str) -> str:
    return f"""
mutation serviceDelete {{
  serviceDelete(id: {literal(service_id)})
}}
"""


def deployment_restart_mutation(deployment_id: str) -> str:
    return f"""
mutation deploymentRestart {{
  deploymentRestart(id: {literal(deployment_id)})
}}
"""


def service_redeploy_mutation(environment_id: str, service_id: str) -> str:
    return f"""
mutation serviceInstanceRedeploy {{
  serviceInstanceRedeploy(
    environmentId: {literal(environment_id)}
    serviceId: {literal(service_id)}
  )
}}
"""
