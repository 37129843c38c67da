"""
OpenVPN IP Updater - keep a RouterOS OpenVPN client pointed at a dynamic host.

This package provides a RouterOS API client (``ovpn_ip_updater.routeros``)
and a small command-line tool that re-resolves the VPN server hostname and
patches the router's OpenVPN client endpoint when the tunnel is down.
"""

__version__ = "0.1.0"
__author__ = "OpenVPN IP Updater Contributors"
