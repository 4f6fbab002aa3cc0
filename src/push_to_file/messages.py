"""Log message codes.

Codes follow the ``CSPFK<nnn><level>`` convention so operators can grep for a
single event across deployments.
"""

CSPFK018I = "CSPFK018I No change in secret file, no secret files written"
CSPFK019I = "CSPFK019I Secret file for group %r written to %s"
CSPFK020I = "CSPFK020I Waiting %d seconds before the next secrets refresh"

CSPFK060W = "CSPFK060W Duplicate secret alias %r in group %r; the last value wins in SecretsMap"

CSPFK061E = "CSPFK061E Failed to push secrets for group %r: %s"
