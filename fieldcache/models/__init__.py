from .field import FieldAccessors, FieldOptions, FieldSpec, normalize_ttl

__all__ = ['FieldAccessors', 'FieldOptions', 'FieldSpec', 'normalize_ttl']
