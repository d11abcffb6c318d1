"""
Credential artefacts — the documents that carry passwords into GeoNode.

Pure rendering functions: the provisioning steps decide where each
document goes (a psql session, a GeoServer data directory, the
MapStore client build tree).
"""

from __future__ import annotations

import json
from xml.sax.saxutils import quoteattr

GEOSERVER_USERS_NS = "http://www.geoserver.org/security/users"


def render_users_xml(password: str, username: str = "admin") -> str:
    """GeoServer default user/group service registry with one user.

    The password is stored with GeoServer's ``plain:`` prefix; GeoServer
    re-encodes it on the next start.
    """
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<userRegistry xmlns="{GEOSERVER_USERS_NS}" version="1.0">\n'
        "<users>\n"
        f'<user enabled="true" name={quoteattr(username)} '
        f"password={quoteattr('plain:' + password)}/>\n"
        "</users>\n"
        "<groups/>\n"
        "</userRegistry>\n"
    )


def _sql_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _sql_identifier(name: str) -> str:
    if name.isidentifier() and name.islower():
        return name
    return '"' + name.replace('"', '""') + '"'


def alter_user_sql(passwords: dict[str, str]) -> str:
    """``ALTER USER`` statements, one per database role."""
    return "".join(
        f"ALTER USER {_sql_identifier(user)} WITH PASSWORD {_sql_literal(password)};\n"
        for user, password in passwords.items()
    )


def render_client_env(host: str = "localhost:8000", protocol: str = "http") -> str:
    """``env.json`` pointing the MapStore dev server at the GeoNode backend."""
    return json.dumps(
        {"DEV_SERVER_HOST": host, "DEV_SERVER_HOST_PROTOCOL": protocol},
        indent=4,
    ) + "\n"
