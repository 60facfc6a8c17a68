"""Guests (qemu VMs and lxc containers): aggregate listing, detail, agent commands."""
