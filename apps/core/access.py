"""
Access levels shared by standing shares and emergency grants.

``download`` implies ``view``; ``view`` does not imply ``download``.
"""

ACCESS_VIEW = 'view'
ACCESS_DOWNLOAD = 'download'

ACCESS_ACTIONS = (ACCESS_VIEW, ACCESS_DOWNLOAD)

_COVERED_ACTIONS = {
    ACCESS_VIEW: {ACCESS_VIEW},
    ACCESS_DOWNLOAD: {ACCESS_VIEW, ACCESS_DOWNLOAD},
}


def access_type_covers(access_type, action):
    return action in _COVERED_ACTIONS.get(access_type, set())
