# Author: Bradley R. Kinnard
# schema definitions for run config and generator policy validation

semantics_enum = ["bounded", "stutter"]

weights_schema = {
    "type": "object",
    "minProperties": 1,
    "additionalProperties": {"type": "number", "minimum": 0},
    "description": "relative frequency per action kind"
}

run_config_schema = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "domain": {
            "type": "string",
            "description": "registered domain name, see domains.registry"
        },
        "trials": {"type": "integer", "minimum": 1, "default": 100},
        "max_actions": {"type": "integer", "minimum": 0, "default": 50},
        "seed": {
            "type": ["integer", "null"],
            "minimum": 0,
            "description": "run seed, null = draw a fresh one and report it"
        },
        "workers": {"type": "integer", "minimum": 1, "default": 1},
        "timeout": {
            "type": ["number", "null"],
            "exclusiveMinimum": 0,
            "description": "whole-run timeout in seconds, checked between trials"
        },
        "semantics": {"type": "string", "enum": semantics_enum, "default": "bounded"},
        "stop_on_failure": {"type": "boolean", "default": False},
        "attempt_factor": {"type": "integer", "minimum": 1, "default": 10},
        "weights": {
            "type": "object",
            "description": "per-domain weight overrides keyed by domain name",
            "additionalProperties": weights_schema
        },
        "log_level": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR"],
            "default": "INFO"
        }
    }
}

scripted_policy_schema = {
    "type": "object",
    "required": ["mode", "actions"],
    "additionalProperties": False,
    "properties": {
        "mode": {"const": "scripted"},
        "actions": {"type": "array"}
    }
}

random_policy_schema = {
    "type": "object",
    "required": ["mode", "weights", "max_actions"],
    "additionalProperties": False,
    "properties": {
        "mode": {"const": "random"},
        "weights": weights_schema,
        "max_actions": {"type": "integer", "minimum": 0},
        "seed": {"type": ["integer", "null"], "minimum": 0},
        "attempt_factor": {"type": "integer", "minimum": 1}
    }
}

policy_schema = {
    "oneOf": [scripted_policy_schema, random_policy_schema]
}
