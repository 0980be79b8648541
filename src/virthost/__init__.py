"""Declarative host-configuration compiler for a libvirt/QEMU daemon stack."""

__version__ = "0.3.0"
