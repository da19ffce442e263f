from .code_draft import CodeDraft

__all__ = [
    'CodeDraft',
]
