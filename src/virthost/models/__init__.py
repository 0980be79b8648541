"""Pydantic resource declaration models."""

from virthost.models.plan import ResourcePlan
from virthost.models.resource import (
    ActivationTrigger,
    AuthorizationRule,
    ExternalUnit,
    GeneratedFile,
    KernelModule,
    OverwritePolicy,
    PrincipalGroup,
    PrincipalUser,
    PrivilegeGrant,
    Resource,
    RestartPolicy,
    SeedData,
    Service,
    Socket,
    SymlinkEntry,
    SymlinkSet,
)

__all__ = [
    "ActivationTrigger",
    "AuthorizationRule",
    "ExternalUnit",
    "GeneratedFile",
    "KernelModule",
    "OverwritePolicy",
    "PrincipalGroup",
    "PrincipalUser",
    "PrivilegeGrant",
    "Resource",
    "ResourcePlan",
    "RestartPolicy",
    "SeedData",
    "Service",
    "Socket",
    "SymlinkEntry",
    "SymlinkSet",
]
