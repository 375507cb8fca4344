from vaultauth.token import TokenDescriptor


class TestTokenDescriptor:
    def test_from_lookup(self):
        descriptor = TokenDescriptor.from_response({
            "data": {
                "id": "s.token",
                "accessor": "acc",
                "ttl": 2764800,
                "renewable": True,
                "policies": ["default", "app"],
            }
        })

        assert descriptor.renewable is True
        assert descriptor.ttl == 2764800
        assert descriptor.accessor == "acc"
        assert descriptor.policies == ("default", "app")
        assert descriptor.is_expired() is False

    def test_from_renewal(self):
        descriptor = TokenDescriptor.from_response({
            "data": None,
            "auth": {
                "client_token": "s.renewed",
                "lease_duration": 1800,
                "renewable": True,
            }
        })

        assert descriptor.renewable is True
        assert descriptor.ttl == 1800
        assert descriptor.client_token == "s.renewed"

    def test_root_token(self):
        descriptor = TokenDescriptor.from_response({"data": {"id": "root", "ttl": 0, "renewable": False}})

        assert descriptor.renewable is False
        assert descriptor.ttl == 0
        assert descriptor.is_expired() is True

    def test_empty_response(self):
        descriptor = TokenDescriptor.from_response(None)

        assert descriptor.renewable is False
        assert descriptor.ttl == 0
