import pytest
from pydantic import ValidationError
from tagbump.MODELS.image_ref import ImageRef


class TestImageRef:
    """Tests for ImageRef parsing."""

    def test_parse_simple_name(self):
        ref = ImageRef.parse("kong")
        assert ref.repository == "kong"
        assert ref.tag == "latest"

    def test_parse_with_tag(self):
        ref = ImageRef.parse("supabase/postgres:15.8.1.060")
        assert ref.repository == "supabase/postgres"
        assert ref.tag == "15.8.1.060"

    def test_parse_double_quoted(self):
        ref = ImageRef.parse('"repo/name:1.2.3"')
        assert ref.repository == "repo/name"
        assert ref.tag == "1.2.3"

    def test_parse_single_quoted(self):
        ref = ImageRef.parse("'timberio/vector:0.28.1-alpine'")
        assert ref.repository == "timberio/vector"
        assert ref.tag == "0.28.1-alpine"

    def test_registry_port_is_not_a_tag(self):
        ref = ImageRef.parse("localhost:5000/app")
        assert ref.repository == "localhost:5000/app"
        assert ref.tag == "latest"

    def test_registry_port_with_tag(self):
        ref = ImageRef.parse("registry.local:5000/team/app:2.1")
        assert ref.repository == "registry.local:5000/team/app"
        assert ref.tag == "2.1"

    def test_host_with_path(self):
        ref = ImageRef.parse("ghcr.io/coollabsio/coolify:4.0.0")
        assert ref.repository == "ghcr.io/coollabsio/coolify"
        assert ref.tag == "4.0.0"

    def test_empty_reference_raises(self):
        with pytest.raises(ValueError):
            ImageRef.parse("")
        with pytest.raises(ValueError):
            ImageRef.parse("''")

    def test_missing_repository_raises(self):
        with pytest.raises(ValueError):
            ImageRef.parse(":1.0")

    def test_str_representation(self):
        assert str(ImageRef.parse("kong:2.8.1")) == "kong:2.8.1"
        assert str(ImageRef.parse("kong")) == "kong:latest"

    def test_is_immutable(self):
        ref = ImageRef.parse("kong:2.8.1")
        with pytest.raises(ValidationError):
            ref.tag = "3.0"

    def test_with_tag(self):
        ref = ImageRef.parse("kong:2.8.1")
        assert str(ref.with_tag("3.0")) == "kong:3.0"
        assert ref.tag == "2.8.1"
