"""
Checks on urls before we fetch them, so a hostile object can't point us at internal services
"""
import ipaddress
import logging
import re
import socket
from urllib.parse import urlparse, ParseResult

from flask import current_app

type IpAddress = ipaddress.IPv4Address | ipaddress.IPv6Address

# ftp ssh telnet smtp pop3 rpc netbios smb mssql oracle mysql rdp postgres vnc redis elasticsearch memcached mongo
DEFAULT_BLOCKED_PORTS = {21, 22, 23, 25, 110, 135, 139, 445, 1433, 1521, 3306, 3389, 5432, 5900, 6379, 9200, 11211,
                         27017}

# loopback, private, link-local and 'this network', for both address families
NON_PUBLIC_NETWORKS = [ipaddress.ip_network(network) for network in (
    '0.0.0.0/8', '10.0.0.0/8', '127.0.0.0/8', '169.254.0.0/16', '172.16.0.0/12', '192.168.0.0/16',
    '::1/128', 'fc00::/7', 'fe80::/10',
)]

ALWAYS_BLOCKED_HOSTS = {'localhost', '0.0.0.0', '::1', 'metadata.google.internal'}

SUSPICIOUS = re.compile(r'%00|\.\.|%2e%2e|%252e%252e|[\r\n]|%0[da]', re.IGNORECASE)
HOST_LABEL = re.compile(r'^[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?$', re.IGNORECASE)
# decimal, hex and octal spellings of an address resolve, but no real TLD looks like that
NUMERIC_LABEL = re.compile(r'^(0x[0-9a-f]+|[0-9]+)$', re.IGNORECASE)


def as_ip(hostname: str) -> IpAddress | None:
    try:
        return ipaddress.ip_address(hostname)
    except ValueError:
        return None


def is_public_ip(ip: IpAddress) -> bool:
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return not any(ip in network for network in NON_PUBLIC_NETWORKS)


def is_valid_hostname(hostname: str) -> bool:
    if len(hostname) > 253:
        return False
    labels = hostname.split('.')
    if NUMERIC_LABEL.match(labels[-1]):
        return False
    return all(HOST_LABEL.match(label) for label in labels)


class URIValidator:
    """
    Settings come from the app config: URI_ALLOWED_SCHEMES, URI_BLOCKED_PORTS, URI_BLOCKED_HOSTS, MAX_URI_LENGTH,
    URI_RESOLVE_DNS and REQUIRE_HTTPS_ACTIVITYPUB. validate() raises ValueError with the reason, or returns the uri.
    """

    def __init__(self):
        config = current_app.config
        self.logger = logging.getLogger(__name__)
        self.allowed_schemes = set(config.get('URI_ALLOWED_SCHEMES', {'http', 'https'}))
        self.blocked_ports = set(config.get('URI_BLOCKED_PORTS', DEFAULT_BLOCKED_PORTS))
        self.blocked_hosts = {host.lower() for host in config.get('URI_BLOCKED_HOSTS', [])} | ALWAYS_BLOCKED_HOSTS
        self.max_uri_length = config.get('MAX_URI_LENGTH', 2048)
        self.resolve_dns = config.get('URI_RESOLVE_DNS', True)
        self.require_https = config.get('REQUIRE_HTTPS_ACTIVITYPUB', True)
        self._resolved: dict[str, list[IpAddress]] = {}

    def validate(self, uri: str, context: str = 'general') -> str:
        """context='activitypub' also insists on https, unless REQUIRE_HTTPS_ACTIVITYPUB is off"""
        if not uri:
            raise ValueError("Empty URI")
        if len(uri) > self.max_uri_length:
            raise ValueError(f"URI too long: {len(uri)} > {self.max_uri_length}")
        if SUSPICIOUS.search(uri):
            raise ValueError("URI contains suspicious pattern")

        parsed = urlparse(uri)
        scheme = parsed.scheme.lower()
        if not scheme:
            raise ValueError("URI missing scheme")
        if scheme not in self.allowed_schemes:
            raise ValueError(f"Disallowed URI scheme: {parsed.scheme}")
        if not parsed.hostname:
            raise ValueError("URI missing hostname")

        self._check_host(parsed.hostname.lower())
        self._check_port(parsed)

        if context == 'activitypub' and self.require_https and scheme != 'https':
            raise ValueError("ActivityPub URIs must use HTTPS")
        return uri

    def _check_host(self, hostname: str) -> None:
        if hostname in self.blocked_hosts:
            raise ValueError(f"Blocked hostname: {hostname}")

        ip = as_ip(hostname)
        if ip is not None:
            if not is_public_ip(ip):
                raise ValueError(f"Private IP address not allowed: {ip}")
            return

        if not is_valid_hostname(hostname):
            raise ValueError(f"Invalid hostname: {hostname}")
        if self.resolve_dns:
            for resolved in self._resolve(hostname):
                if not is_public_ip(resolved):
                    raise ValueError(f"Hostname resolves to private IP: {hostname} -> {resolved}")

    def _check_port(self, parsed: ParseResult) -> None:
        try:
            port = parsed.port
        except ValueError:
            raise ValueError("Invalid port")
        if port is None:
            port = 443 if parsed.scheme.lower() == 'https' else 80
        if port in self.blocked_ports:
            raise ValueError(f"Blocked port: {port}")

    def _resolve(self, hostname: str) -> list[IpAddress]:
        if hostname not in self._resolved:
            try:
                addresses = socket.getaddrinfo(hostname, None)
            except socket.gaierror:
                self.logger.warning(f"Failed to resolve hostname: {hostname}")
                addresses = []
            ips = []
            for *_, sockaddr in addresses:
                ip = as_ip(sockaddr[0])
                if ip is not None and ip not in ips:
                    ips.append(ip)
            self._resolved[hostname] = ips
        return self._resolved[hostname]

    @staticmethod
    def is_same_host(uri1: str, uri2: str) -> bool:
        """Same host and port"""
        return urlparse(uri1).netloc.lower() == urlparse(uri2).netloc.lower()


def validate_uri(uri: str, context: str = 'general') -> str:
    return URIValidator().validate(uri, context)
