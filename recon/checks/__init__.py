from .base import CheckRegistry, ItemCheck, ItemKind, registry
from .builtin import AclCheck, ChangeSetCheck, NodeCheck, TransactionCheck, expand_acl_tuples

registry.register(NodeCheck)
registry.register(AclCheck)
registry.register(TransactionCheck)
registry.register(ChangeSetCheck)

TRANSACTION_KINDS = (TransactionCheck.KIND.name, ChangeSetCheck.KIND.name)

__all__ = [
    "AclCheck",
    "ChangeSetCheck",
    "CheckRegistry",
    "ItemCheck",
    "ItemKind",
    "NodeCheck",
    "TRANSACTION_KINDS",
    "TransactionCheck",
    "expand_acl_tuples",
    "registry",
]
