"""Tests for declaration loading and variable substitution."""

import json
import pytest
from converge.ingest.declaration_loader import load_declarations, parse_declarations
from converge.ingest.references import find_references, referenced_resources
from converge.utils.errors import DeclarationError

DOCUMENT = """
variables:
  project: shop
  db_size: micro
  multi_az: false
environments:
  prod:
    variables:
      db_size: medium
      multi_az: true
resources:
  - name: network
    type: vpc
    attributes:
      cidr: 10.0.0.0/16
  - name: database
    type: postgres
    depends_on: [network]
    attributes:
      identifier: "${var.project}-database"
      size: "${var.db_size}"
      multi_az: "${var.multi_az}"
      vpc: "${network.id}"
"""


@pytest.fixture
def declaration_file(tmp_path):
    path = tmp_path / "stack.yaml"
    path.write_text(DOCUMENT, encoding="utf-8")
    return path


class TestLoadDeclarations:
    """Test reading declaration files."""
    
    def test_defaults_apply_outside_prod(self, declaration_file):
        """Non-prod environments get the base variables."""
        declarations = load_declarations(str(declaration_file), "staging")
        database = declarations.resources[1]
        
        assert declarations.environment == "staging"
        assert database.attributes["size"] == "micro"
        assert database.attributes["multi_az"] is False
    
    def test_environment_overrides(self, declaration_file):
        """Per-environment variables win over defaults."""
        database = load_declarations(str(declaration_file), "prod").resources[1]
        assert database.attributes["size"] == "medium"
        assert database.attributes["multi_az"] is True
    
    def test_embedded_placeholder_rendered(self, declaration_file):
        """A placeholder inside a longer string is rendered as text."""
        database = load_declarations(str(declaration_file), "dev").resources[1]
        assert database.attributes["identifier"] == "shop-database"
    
    def test_resource_references_left_intact(self, declaration_file):
        """${resource.output} is resolved at apply time, not load time."""
        database = load_declarations(str(declaration_file), "dev").resources[1]
        assert database.attributes["vpc"] == "${network.id}"
    
    def test_json_documents(self, tmp_path):
        """JSON files are accepted."""
        path = tmp_path / "stack.json"
        path.write_text(json.dumps({"resources": [{"name": "a", "type": "thing"}]}), encoding="utf-8")
        declarations = load_declarations(str(path), "dev")
        assert [r.name for r in declarations.resources] == ["a"]
    
    def test_missing_file(self):
        """A missing file raises DeclarationError."""
        with pytest.raises(DeclarationError, match="not found"):
            load_declarations("does-not-exist.yaml", "dev")
    
    def test_invalid_yaml(self, tmp_path):
        """Broken YAML raises DeclarationError."""
        path = tmp_path / "broken.yaml"
        path.write_text("resources: [unclosed", encoding="utf-8")
        with pytest.raises(DeclarationError, match="Invalid YAML"):
            load_declarations(str(path), "dev")
    
    def test_empty_file_has_no_resources(self, tmp_path):
        """An empty document is an empty graph."""
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_declarations(str(path), "dev").resources == []


class TestParseDeclarations:
    """Test validation of raw documents."""
    
    def test_undefined_variable(self):
        """Referencing an undefined variable fails."""
        data = {"resources": [{"name": "a", "type": "t", "attributes": {"x": "${var.nope}"}}]}
        with pytest.raises(DeclarationError, match="Undefined variable"):
            parse_declarations(data, "dev")
    
    def test_invalid_resource_name(self):
        """Names must start with a letter."""
        data = {"resources": [{"name": "1bad", "type": "t"}]}
        with pytest.raises(DeclarationError, match="index 0"):
            parse_declarations(data, "dev")
    
    def test_variable_scope_name_reserved(self):
        """A resource cannot be called 'var'; ${var.x} always means a variable."""
        data = {"resources": [{"name": "var", "type": "t"}]}
        with pytest.raises(DeclarationError, match="reserved"):
            parse_declarations(data, "dev")
    
    def test_missing_type(self):
        """Every resource needs a type."""
        data = {"resources": [{"name": "a"}]}
        with pytest.raises(DeclarationError):
            parse_declarations(data, "dev")


class TestReferences:
    """Test placeholder discovery."""
    
    def test_nested_references_found(self):
        """References inside lists and dicts are discovered in order."""
        attributes = {
            "listeners": [{"cert": "${cert.arn}"}],
            "vpc": "${network.id}",
            "name": "${var.project}-lb",
            "logs": "s3://${bucket.name}/lb",
        }
        assert find_references(attributes) == [("cert", "arn"), ("network", "id"), ("bucket", "name")]
        assert referenced_resources(attributes) == ["cert", "network", "bucket"]
