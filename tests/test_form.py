"""Unit tests for panelforms.forms.form — Form projection and record recognition."""

from panelforms.fields import Field, File, Tab, Tabs
from panelforms.forms.form import Form, is_record, record_value


def _fields():
    return [
        Tabs("Profile", tabs=[
            Tab("Account", fields=[
                Field("name", required=True),
                Field("email", label="E-mail", required=True, rules=["email"]),
                Field("newsletter", default=True),
            ]),
            Tab("Media", fields=[
                File("avatar", required=True, max_size_kb=100),
                Field("bio", default=None),
            ]),
        ]),
    ]


class TestDefaults:

    def test_only_default_bearing_fields(self):
        assert Form(_fields(), "c").get_defaults() == {"newsletter": True, "bio": None}

    def test_purity(self):
        form = Form([Field("tags", default=["a"]), Field("n", default=1)], "c")
        first = form.get_defaults()
        first["tags"].append("mutated")
        second = form.get_defaults()
        assert second == {"tags": ["a"], "n": 1}
        assert form.get_defaults() == second

    def test_record_ignored_unless_opted_in(self, user_record):
        form = Form([Field("bio", default="static")], "c", record=user_record)
        assert form.get_defaults() == {"bio": "static"}

    def test_record_values_when_opted_in(self, user_record):
        form = Form(
            [Field("name"), Field("bio", default="static"), Field("extra", default=1)],
            "c",
            record=user_record,
            defaults_from_record=True,
        )
        assert form.get_defaults() == {"name": "Ada Lovelace", "bio": "Analyst", "extra": 1}

    def test_pydantic_record(self, article_record):
        form = Form(
            [Field("record.title"), Field("bio", default="x")],
            "c",
            record=article_record,
            defaults_from_record=True,
        )
        assert form.get_defaults() == {"record.title": "Notes", "bio": "Draft bio"}


class TestRulesAndAttributes:

    def test_rules_keyed_by_validation_key(self):
        rules = Form(_fields(), "c").get_rules()
        assert rules == {
            "name": ["required"],
            "email": ["required", "email"],
            "temporaryUploadedFiles.avatar": ["required_without:avatar", "file", "max:100"],
        }

    def test_attributes(self):
        attributes = Form(_fields(), "c").get_validation_attributes()
        assert attributes["email"] == "E-mail"
        assert attributes["avatar"] == "Avatar"
        assert attributes["temporaryUploadedFiles.avatar"] == "Avatar"
        assert attributes["newsletter"] == "Newsletter"


    def test_required_file_fields_read_as_required(self):
        messages = Form(_fields() + [File("optional_doc")], "c").get_validation_messages()
        assert messages == {
            "temporaryUploadedFiles.avatar.required_without": "The :attribute field is required.",
        }


class TestStructure:

    def test_fields_and_lookup(self):
        form = Form(_fields(), "c")
        assert len(form.get_fields()) == 1
        assert [getattr(f, "name", None) for f in form.get_flat_fields()].count("avatar") == 1
        assert form.get_field("bio").name == "bio"
        assert form.get_field("nope") is None

    def test_to_dict(self, user_record):
        d = Form(_fields(), "app.ProfileForm", record=user_record).to_dict()
        assert d["component"] == "app.ProfileForm"
        assert d["has_record"] is True
        assert d["fields"][0]["type"] == "tabs"


class TestRecords:

    def test_is_record(self, user_record, article_record):
        assert is_record(user_record)
        assert is_record(article_record)
        assert not is_record(None)
        assert not is_record({"name": "x"})
        assert not is_record(type(user_record))
        assert not is_record("record")

    def test_record_value(self, user_record, article_record):
        assert record_value(user_record, "record.name") == (True, "Ada Lovelace")
        assert record_value(user_record, "missing") == (False, None)
        assert record_value(user_record, "a.b") == (False, None)
        assert record_value(article_record, "title") == (True, "Notes")
