import pytest

from api_discovery.errors import ValidationError
from api_discovery.parser.detect import DiscoveryVersion, detect_discovery_version


class TestDetectDiscoveryVersion:
    def test_detect_v1_by_marker(self):
        assert detect_discovery_version({"discoveryVersion": "v1"}) == DiscoveryVersion.V1_0

    def test_detect_v1_by_base_path(self):
        assert detect_discovery_version({"basePath": "/v1/"}) == DiscoveryVersion.V1_0

    def test_detect_v03_by_rest_base_path(self):
        assert detect_discovery_version({"restBasePath": "/buzz/v1/"}) == DiscoveryVersion.V0_3

    def test_undetectable(self):
        with pytest.raises(ValidationError):
            detect_discovery_version({"name": "x"})

    def test_not_an_object(self):
        with pytest.raises(ValidationError):
            detect_discovery_version(["basePath"])

    def test_value_strings(self):
        assert DiscoveryVersion("0.3") is DiscoveryVersion.V0_3
        assert DiscoveryVersion("1.0") is DiscoveryVersion.V1_0
