"""Central enum-like definitions to avoid typos in permission/service strings.
Extend cautiously; never rename codes silently - create new ones and deprecate old via migration if needed.
"""
from __future__ import annotations
from typing import List, Dict

SERVICES = ['FB', 'STS', 'EMP', 'SET', 'SYNC', 'LOG']

SERVICE_ACTIONS = {
    'FB': ['READ', 'MANAGE', 'DELETE'],
    'STS': ['MANAGE'],
    'EMP': ['MANAGE'],
    'SET': ['MANAGE'],
    'SYNC': ['RUN'],
    'LOG': ['READ'],
}


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            codes.append(f"{svc}.{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

ROLE_PRESETS: Dict[str, List[str]] = {
    # Department admin: everything inside their own department except destructive bulk ops
    'DepartmentAdmin': [
        'FB.READ', 'FB.MANAGE',
        'STS.MANAGE', 'EMP.MANAGE',
        'SYNC.RUN', 'LOG.READ',
    ],
    'Owner': ['*']
}
