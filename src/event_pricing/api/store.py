"""
Event Store - file-backed categories and pricing rules per event.

Each event is one JSON document `<data_dir>/<event_id>.json`:
    {"categories": [...], "pricingRules": [...], "auditLog": [...]}
"""
import json
import logging
import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r'^[A-Za-z0-9_-]+$')


class EventStore:
    """CRUD over the per-event JSON documents."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def _path(self, event_id: str) -> Path:
        if not _SAFE_ID.match(event_id or ''):
            raise ValueError(f"Invalid event id '{event_id}'")
        return self.data_dir / f"{event_id}.json"

    def exists(self, event_id: str) -> bool:
        return self._path(event_id).exists()

    def _read(self, event_id: str) -> dict:
        path = self._path(event_id)
        if not path.exists():
            raise ValueError(f"Event '{event_id}' not found")
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _write(self, event_id: str, document: dict):
        path = self._path(event_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix('.json.tmp')
        with open(tmp, 'w', encoding='utf-8') as f:
            json.dump(document, f, indent=2)
        tmp.replace(path)

    # Categories

    def list_categories(self, event_id: str) -> list[dict]:
        return self._read(event_id).get('categories', [])

    def set_categories(self, event_id: str, categories: list[dict]) -> list[dict]:
        """Replace the category list, creating the event if needed."""
        document = self._read(event_id) if self.exists(event_id) else {
            'categories': [], 'pricingRules': [], 'auditLog': []
        }
        stored = []
        for cat in categories:
            cat = dict(cat)
            cat['_id'] = str(cat.get('_id') or cat.get('id') or uuid.uuid4().hex)
            cat.pop('id', None)
            stored.append(cat)
        document['categories'] = stored
        self._write(event_id, document)
        return stored

    # Pricing rules

    def list_rules(self, event_id: str) -> list[dict]:
        return self._read(event_id).get('pricingRules', [])

    def get_rule(self, event_id: str, rule_id: str) -> Optional[dict]:
        for rule in self.list_rules(event_id):
            if rule.get('_id') == rule_id:
                return rule
        return None

    def create_rule(self, event_id: str, rule: dict) -> dict:
        document = self._read(event_id)
        rule = dict(rule)
        rule['_id'] = rule.get('_id') or uuid.uuid4().hex
        if any(r.get('_id') == rule['_id'] for r in document['pricingRules']):
            raise ValueError(f"Rule with ID '{rule['_id']}' already exists")
        document['pricingRules'].append(rule)
        self._write(event_id, document)
        return rule

    def update_rule(self, event_id: str, rule_id: str, updates: dict) -> dict:
        document = self._read(event_id)
        for i, rule in enumerate(document['pricingRules']):
            if rule.get('_id') == rule_id:
                rule = {**rule, **updates, '_id': rule_id}
                document['pricingRules'][i] = rule
                self._write(event_id, document)
                return rule
        raise ValueError(f"Rule with ID '{rule_id}' not found")

    def delete_rule(self, event_id: str, rule_id: str) -> bool:
        document = self._read(event_id)
        rules = [r for r in document['pricingRules'] if r.get('_id') != rule_id]
        if len(rules) == len(document['pricingRules']):
            raise ValueError(f"Rule with ID '{rule_id}' not found")
        document['pricingRules'] = rules
        self._write(event_id, document)
        return True

    def bulk_save(self, event_id: str, rules: list[dict], user: Optional[str] = None) -> list[dict]:
        """
        Replace the event's whole rule set.

        Rules left out of `rules` are deleted. Rules without `_id` get a new
        one. The before/after sets are appended to the audit log.
        """
        document = self._read(event_id)
        before = document.get('pricingRules', [])

        after = []
        for rule in rules:
            rule = dict(rule)
            rule['_id'] = rule.get('_id') or uuid.uuid4().hex
            after.append(rule)

        document['pricingRules'] = after
        document.setdefault('auditLog', []).append({
            'action': 'pricingRules.bulkUpdate',
            'user': user,
            'at': datetime.now().isoformat(),
            'before': before,
            'after': after,
        })
        self._write(event_id, document)
        logger.info("Event %s: replaced %d rules with %d", event_id, len(before), len(after))
        return after

    def audit_log(self, event_id: str) -> list[dict]:
        return self._read(event_id).get('auditLog', [])
