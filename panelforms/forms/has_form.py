"""
panelforms FormComponent — A Component driven by a declarative field tree.

Subclasses declare ``fields()`` (and optionally ``properties``, ``rules``,
``validation_attributes``, ``record``). The component then:

    - derives defaults, rules and labels from a Form rebuilt on every access
    - stages client files under ``temporaryUploadedFiles.<field>`` and commits
      them to storage disks on ``store_temporary_uploaded_files()``
    - on validation failure, finds the first failing field in tree order and
      dispatches a ``switch-tab`` browser event for its nearest enclosing tab

Upload lifecycle per file field:

    Empty ──stage──▶ Staged ──validate──▶ Persisted (path in field property) ──▶ Empty
                                   └──────▶ Rejected (staged entry kept, error under plain name)

Committing is not atomic across fields: if the storage disk fails on one
field, fields committed before it stay committed and the storage error is
raised unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO, Callable, Dict, List, Mapping, Optional, Tuple

from panelforms.engine.config import get_config, resolve_path
from panelforms.engine.errors import PanelFormsFieldError, PanelFormsValidationError
from panelforms.engine.logging import (
    log,
    log_tab_focused,
    log_upload_cleared,
    log_upload_persisted,
    log_upload_staged,
    log_validation_failed,
)
from panelforms.fields.components import FieldDef, FileFieldDef, InputFieldDef
from panelforms.forms.component import Component
from panelforms.forms.form import Form, is_record
from panelforms.storage.service import StorageManager, get_storage
from panelforms.uploads.temporary import (
    TEMPORARY_UPLOADS_PROPERTY,
    TemporaryUploadedFile,
    is_temporary_upload_property,
    strip_temporary_upload_prefix,
    temporary_upload_property,
)
from panelforms.validation.validator import ValidationResult

logger = logging.getLogger("panelforms.forms.has_form")


class FormComponent(Component):
    """
    Form-bearing component.

    Args:
        record: Record being edited (SQLAlchemy-mapped instance or pydantic
            model); anything else is treated as "no record".
        storage: StorageManager to commit uploads to (defaults to the global one).
        event_channel: Callable receiving every dispatched BrowserEvent.
        **initial: Property values filled after the baseline is installed.
    """

    record: Any = None
    defaults_from_record: bool = False

    def __init__(
        self,
        record: Any = None,
        storage: Optional[StorageManager] = None,
        event_channel: Optional[Callable[..., None]] = None,
        **initial: Any,
    ):
        self.record = record if record is not None else type(self).record
        self._storage = storage
        super().__init__(event_channel=event_channel, **initial)

    @staticmethod
    def get_temporary_uploaded_file_property_name(field_name: str) -> str:
        return temporary_upload_property(field_name)

    def get_baseline_properties(self) -> Dict[str, Any]:
        baseline = super().get_baseline_properties()
        baseline.setdefault(TEMPORARY_UPLOADS_PROPERTY, {})
        return baseline

    def get_storage(self) -> StorageManager:
        return self._storage or get_storage()

    # -------------------------------------------------------------------
    # Form
    # -------------------------------------------------------------------

    def get_fields(self) -> List[FieldDef]:
        fields = getattr(self, "fields", None)
        if not callable(fields):
            return []
        return list(fields() or [])

    def get_form(self) -> Form:
        record = self.record if is_record(self.record) else None
        return Form(
            self.get_fields(),
            self.component_name(),
            record,
            defaults_from_record=self.defaults_from_record,
        )

    def get_property_defaults(self) -> Dict[str, Any]:
        return self.get_form().get_defaults()

    def fill_with_form_defaults(self) -> None:
        self.fill(self.get_property_defaults())

    def reset(self, *properties: Any) -> None:
        """
        Reset named properties to baseline, then re-apply form defaults for
        those of them that declare one. With no names, every default-bearing
        field is reset; other properties are left alone.
        """
        if len(properties) == 1 and isinstance(properties[0], (list, tuple)):
            properties = tuple(properties[0])

        defaults = self.get_property_defaults()
        names = list(properties) if properties else list(defaults)
        if not names:
            return

        super().reset(*names)
        self.fill({name: defaults[name] for name in names if name in defaults})

    # -------------------------------------------------------------------
    # Rules & attributes
    # -------------------------------------------------------------------

    def get_rules(self) -> Dict[str, List[Any]]:
        """Form rules first, then component-declared rules appended per key."""
        rules = self.get_form().get_rules()
        for key, conditions in super().get_rules().items():
            rules[key] = rules.get(key, []) + conditions
        return rules

    def get_messages(self) -> Dict[str, str]:
        """Component-declared messages win over form messages."""
        messages = self.get_form().get_validation_messages()
        messages.update(super().get_messages())
        return messages

    def get_validation_attributes(self) -> Dict[str, str]:
        """Component-declared labels win over field labels."""
        attributes = self.get_form().get_validation_attributes()
        attributes.update(super().get_validation_attributes())
        return attributes

    # -------------------------------------------------------------------
    # Temporary uploads
    # -------------------------------------------------------------------

    def _file_field(self, form: Form, name: str) -> FileFieldDef:
        field = form.get_field(name)
        if not isinstance(field, FileFieldDef):
            raise PanelFormsFieldError(
                f"'{name}' is not a file field of {type(self).__name__}",
                component=self.component_name(),
                field=name,
            )
        return field

    def get_temporary_uploaded_file(self, name: str) -> Optional[TemporaryUploadedFile]:
        return self.get_property_value(temporary_upload_property(name))

    def stage_temporary_upload(
        self,
        name: str,
        stream: BinaryIO,
        filename: str,
        mime_type: Optional[str] = None,
    ) -> TemporaryUploadedFile:
        """
        Stage a client file for file field ``name``, replacing any file
        already staged for it.

        Raises:
            PanelFormsFieldError: ``name`` is not a file field.
            PanelFormsValidationError: the file exceeds uploads.max_upload_size_kb.
        """
        form = self.get_form()
        field = self._file_field(form, name)
        uploads = get_config().uploads

        upload = TemporaryUploadedFile.create(
            stream,
            filename,
            str(resolve_path(uploads.temporary_directory)),
            mime_type=mime_type,
        )
        if upload.size > uploads.max_upload_size_kb * 1024:
            upload.delete()
            message = (
                f"The {field.get_label()} may not be greater than "
                f"{uploads.max_upload_size_kb} kilobytes."
            )
            self.reset_error_bag(name)
            self.add_error(name, message)
            self.focus_tabbed_field(form, field)
            log(log_validation_failed(
                self.component_name(), {name: ["max"]}, scope="uploads", focused_field=name,
            ))
            raise PanelFormsValidationError(
                message,
                component=self.component_name(),
                field=name,
                errors={name: [message]},
                failed={name: ["max"]},
            )

        previous = self.get_temporary_uploaded_file(name)
        if previous is not None:
            previous.delete()

        self.sync_input(temporary_upload_property(name), upload)
        self.reset_error_bag(name)
        log(log_upload_staged(
            self.component_name(), name, upload.client_filename, upload.size, upload.mime_type,
        ))
        return upload

    def store_temporary_uploaded_files(self) -> Dict[str, str]:
        """
        Commit every staged upload to its field's disk.

        Returns {field name: stored path} for the fields committed.
        """
        storage = self.get_storage()
        stored: Dict[str, str] = {}

        for field in self.get_form().tree.file_fields():
            upload = self.get_temporary_uploaded_file(field.name)
            if not upload:
                continue

            disk = field.disk or storage.default_disk
            try:
                if field.visibility == "public":
                    path = upload.store_publicly(field.directory, disk, storage=storage)
                else:
                    path = upload.store(field.directory, disk, storage=storage)
            except Exception:
                if stored:
                    logger.error(
                        f"{self.component_name()}: storing '{field.name}' failed after "
                        f"committing {sorted(stored)}"
                    )
                raise

            self.sync_input(field.name, path, track=False)
            stored[field.name] = path
            log(log_upload_persisted(
                self.component_name(), field.name, disk, path, field.visibility,
            ))
            self.clear_temporary_uploaded_file(field.name)

        return stored

    def clear_temporary_uploaded_file(self, name: str) -> None:
        upload = self.get_temporary_uploaded_file(name)
        if upload is not None:
            upload.delete()
            log(log_upload_cleared(self.component_name(), name))
        self.sync_input(temporary_upload_property(name), None, track=False)

    def remove_uploaded_file(self, name: str) -> None:
        """Forget both the stored path and any staged upload of ``name``."""
        self.sync_input(name, None, track=False)
        self.clear_temporary_uploaded_file(name)
        log(log_upload_cleared(self.component_name(), name, removed_stored=True))

    def get_uploaded_file_url(self, name: str, disk: Optional[str] = None) -> Optional[str]:
        path = self.get_property_value(name)
        if not path:
            return None

        if disk is None:
            field = self.get_form().get_field(name)
            disk = field.disk if isinstance(field, FileFieldDef) else None
        return self.get_storage().disk(disk).url(path)

    # -------------------------------------------------------------------
    # Validation & tab focus
    # -------------------------------------------------------------------

    def handle_validation_failure(
        self,
        result: ValidationResult,
    ) -> Tuple[Dict[str, List[str]], Dict[str, List[str]]]:
        """Focus the first failing field's tab and un-namespace error keys."""
        form = self.get_form()
        field = self._first_failing_field(form, result.failed)
        if field is not None:
            self.focus_tabbed_field(form, field)

        errors: Dict[str, List[str]] = {}
        for key, messages in result.errors.items():
            errors.setdefault(strip_temporary_upload_prefix(key), []).extend(messages)
        failed: Dict[str, List[str]] = {}
        for key, rule_names in result.failed.items():
            failed.setdefault(strip_temporary_upload_prefix(key), []).extend(rule_names)

        log(log_validation_failed(
            self.component_name(),
            failed,
            focused_field=field.name if field is not None else None,
        ))
        return errors, failed

    @staticmethod
    def _first_failing_field(form: Form, failed: Mapping[str, Any]) -> Optional[InputFieldDef]:
        for field in form.get_flat_fields():
            if not isinstance(field, InputFieldDef):
                continue
            if field.name in failed or field.validation_key in failed:
                return field
        return None

    def focus_tabbed_field(self, form: Form, field: FieldDef) -> Optional[str]:
        """
        Dispatch ``switch-tab`` for the nearest tab enclosing ``field``.
        Returns the payload, or None when the field is in no tab.
        """
        target = form.tree.focus_target(field)
        if target is None:
            return None

        self.dispatch_browser_event("switch-tab", target)
        log(log_tab_focused(self.component_name(), getattr(field, "name", ""), target))
        return target

    def validate_only(
        self,
        field: str,
        rules: Optional[Mapping[str, Any]] = None,
        messages: Optional[Mapping[str, str]] = None,
        attributes: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """Like Component.validate_only; a file field may be named plainly."""
        all_rules = rules if rules is not None else self.get_rules()
        key = field
        if key not in all_rules and temporary_upload_property(field) in all_rules:
            key = temporary_upload_property(field)

        validated = super().validate_only(key, all_rules, messages, attributes)
        self.reset_error_bag(strip_temporary_upload_prefix(key))
        return validated

    def validate_temporary_uploaded_files(self) -> Dict[str, Any]:
        """
        Validate only the staged uploads.

        Errors are reported under the plain field names; the staged entries
        are kept so the user can fix or replace the same file.
        """
        rules = {
            key: conditions
            for key, conditions in self.get_rules().items()
            if is_temporary_upload_property(key)
        }
        if not rules:
            return {}

        result = self.run_validation(rules)
        if result.passes:
            self.reset_error_bag(*(strip_temporary_upload_prefix(k) for k in rules))
            return result.validated

        errors, failed = self.handle_validation_failure(result)
        self.set_error_bag(errors)
        raise PanelFormsValidationError(
            f"Upload validation failed for {len(failed)} field(s)",
            component=self.component_name(),
            result=result,
            errors=errors,
            failed=failed,
        )

    # -------------------------------------------------------------------
    # Rendering payload
    # -------------------------------------------------------------------

    def get_render_data(self) -> Dict[str, Any]:
        """Everything the rendering layer needs for one pass."""
        form = self.get_form()
        values = self.all_properties()
        values.pop(TEMPORARY_UPLOADS_PROPERTY, None)
        staged = {
            field.name: self.get_temporary_uploaded_file(field.name)
            for field in form.tree.file_fields()
        }
        return {
            "id": self.id,
            "form": form.to_dict(),
            "values": values,
            "temporary_uploads": {
                name: upload.to_dict() for name, upload in staged.items() if upload is not None
            },
            "errors": self.get_error_bag().messages(),
            "events": [e.to_dict() for e in self.dispatch_queue],
        }
