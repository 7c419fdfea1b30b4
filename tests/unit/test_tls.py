"""Tests for mTLS configuration assembly."""

import ssl
from datetime import datetime, timedelta, timezone

import pytest

from certmanager_mcp.pki.authority import issue_leaf
from certmanager_mcp.pki.tls import (
    TLSConfig,
    client_config,
    presented_chain,
    server_config,
)


def _handshake(client: ssl.SSLObject, server: ssl.SSLObject, c_in, c_out, s_in, s_out):
    """Drive a TLS handshake between two in-memory SSL objects."""
    client_done = server_done = False
    for _ in range(10):
        if not client_done:
            try:
                client.do_handshake()
                client_done = True
            except ssl.SSLWantReadError:
                pass
        s_in.write(c_out.read())

        if not server_done:
            try:
                server.do_handshake()
                server_done = True
            except ssl.SSLWantReadError:
                pass
        c_in.write(s_out.read())

        if client_done and server_done:
            return
    raise AssertionError("handshake did not complete")


def _connect(client_conf: TLSConfig, server_conf: TLSConfig):
    c_in, c_out = ssl.MemoryBIO(), ssl.MemoryBIO()
    s_in, s_out = ssl.MemoryBIO(), ssl.MemoryBIO()
    client = client_conf.wrap_bio(c_in, c_out)
    server = server_conf.wrap_bio(s_in, s_out)
    _handshake(client, server, c_in, c_out, s_in, s_out)
    return client, server


@pytest.fixture(scope="module")
def client_leaf(root_ca):
    not_after = datetime.now(timezone.utc) + timedelta(days=30)
    return issue_leaf(root_ca, "client-a", [], not_after)


@pytest.mark.unit
class TestPresentedChain:
    """Tests for presented certificate ordering."""

    def test_root_ca_presents_leaf_only(self, root_ca, server_leaf):
        """Test a leaf issued by a root is presented alone."""
        assert presented_chain(server_leaf, root_ca, []) == [server_leaf.certificate]

    def test_intermediate_ca_excludes_root(self, root_ca, intermediate_chain, expiry):
        """Test the chain starts with the leaf and never includes the root."""
        issuing, middle = intermediate_chain
        leaf = issue_leaf(issuing, "deep.internal", [], expiry)

        certs = presented_chain(
            leaf, issuing, [middle.certificate, root_ca.certificate]
        )

        assert certs == [leaf.certificate, issuing.certificate, middle.certificate]
        assert root_ca.certificate not in certs


@pytest.mark.unit
class TestClientConfig:
    """Tests for client-side configuration."""

    def test_settings(self, root_ca, client_leaf):
        """Test hostname checking and server verification are enforced."""
        conf = client_config(root_ca, client_leaf, "svc.internal")

        assert conf.server_name == "svc.internal"
        assert conf.client_auth_required is False
        assert conf.context.check_hostname is True
        assert conf.context.verify_mode == ssl.CERT_REQUIRED
        assert conf.context.minimum_version == ssl.TLSVersion.TLSv1_2
        assert conf.server_side is False

    def test_trust_pool_is_ca_only(self, root_ca, client_leaf):
        """Test only the CA certificate is trusted."""
        conf = client_config(root_ca, client_leaf, "svc.internal")

        assert conf.trust_pool == [root_ca.certificate]
        assert len(conf.context.get_ca_certs()) == 1

    def test_presented_chain(self, root_ca, client_leaf):
        """Test the client presents its leaf first."""
        conf = client_config(root_ca, client_leaf, "svc.internal")
        assert conf.certificates == [client_leaf.certificate]


@pytest.mark.unit
class TestServerConfig:
    """Tests for server-side configuration."""

    def test_requires_client_certificates(self, root_ca, server_leaf):
        """Test mutual authentication is mandatory."""
        conf = server_config(root_ca, server_leaf, ["alt.svc"])

        assert conf.client_auth_required is True
        assert conf.context.verify_mode == ssl.CERT_REQUIRED
        assert conf.server_side is True
        assert conf.alt_names == ["alt.svc"]

    def test_client_ca_pool_is_ca_only(self, root_ca, server_leaf):
        """Test only the CA certificate is trusted for client certificates."""
        conf = server_config(root_ca, server_leaf)

        assert conf.trust_pool == [root_ca.certificate]
        assert len(conf.context.get_ca_certs()) == 1


@pytest.mark.unit
class TestHandshake:
    """End-to-end mTLS handshakes over memory BIOs."""

    def test_mutual_tls_succeeds(self, root_ca, server_leaf, client_leaf):
        """Test a client and server issued by the same CA authenticate each other."""
        client, server = _connect(
            client_config(root_ca, client_leaf, "svc.internal"),
            server_config(root_ca, server_leaf, ["alt.svc"]),
        )

        peer = server.getpeercert()
        subject = dict(item[0] for item in peer["subject"])
        assert subject["commonName"] == "client-a"

    def test_alt_name_accepted(self, root_ca, server_leaf, client_leaf):
        """Test the server is accepted under an alternative name."""
        _connect(
            client_config(root_ca, client_leaf, "alt.svc"),
            server_config(root_ca, server_leaf),
        )

    def test_wrong_server_name_rejected(self, root_ca, server_leaf, client_leaf):
        """Test hostname verification rejects an unexpected name."""
        with pytest.raises(ssl.SSLCertVerificationError):
            _connect(
                client_config(root_ca, client_leaf, "other.internal"),
                server_config(root_ca, server_leaf),
            )

    def test_empty_trust_pool_rejected(self, root_ca, server_leaf):
        """Test a client trusting nothing rejects the server."""
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        bare = TLSConfig(
            context=context,
            certificates=[],
            trust_pool=[],
            server_name="svc.internal",
        )

        with pytest.raises(ssl.SSLCertVerificationError):
            _connect(bare, server_config(root_ca, server_leaf))

    def test_client_without_certificate_rejected(self, root_ca, server_leaf):
        """Test the server refuses clients that present no certificate."""
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.load_verify_locations(cadata=root_ca.cert_pem())
        anonymous = TLSConfig(
            context=context,
            certificates=[],
            trust_pool=[root_ca.certificate],
            server_name="svc.internal",
        )

        with pytest.raises(ssl.SSLError):
            _connect(anonymous, server_config(root_ca, server_leaf))

    def test_intermediate_chain_handshake(self, root_ca, intermediate_chain, expiry):
        """Test a leaf from an intermediate CA verifies with the issuing CA trusted."""
        issuing, middle = intermediate_chain
        chain = [middle.certificate, root_ca.certificate]
        server = issue_leaf(issuing, "svc.internal", [], expiry)
        client = issue_leaf(issuing, "client-b", [], expiry)

        _connect(
            client_config(issuing, client, "svc.internal", chain),
            server_config(issuing, server, [], chain),
        )
