# flowcheck/structural/schema.py

# A single hop inside an n8n connection list: {"node": "Target", "type": "main", "index": 0}
_HOP = {
    "type": "object",
    "required": ["node"],
    "properties": {
        "node": {"type": "string", "minLength": 1},
        "type": {"type": "string"},
        "index": {
            "type": "integer",
            "minimum": 0
        }
    },
    "additionalProperties": True
}

# Canvas position of a node. n8n stores [x, y]; some tools emit {"x": .., "y": ..}.
# Checked per node by the validator, not by WORKFLOW_SCHEMA: a bad position is a
# finding, not a malformed document.
POSITION_SCHEMA = {
    "anyOf": [
        {
            "type": "array",
            "items": {"type": "number"},
            "minItems": 2,
            "maxItems": 2
        },
        {
            "type": "object",
            "required": ["x", "y"],
            "properties": {
                "x": {"type": "number"},
                "y": {"type": "number"}
            }
        }
    ]
}

WORKFLOW_SCHEMA = {
    "type": "object",
    "required": ["nodes"],
    "properties": {
        "name": {"type": ["string", "null"]},

        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["type"],
                # n8n exports always carry a name; older ones may lack the uuid id
                "anyOf": [
                    {"required": ["name"]},
                    {"required": ["id"]}
                ],
                "properties": {
                    "id": {
                        "type": ["string", "number"]
                    },
                    "name": {
                        "type": "string",
                        "minLength": 1
                    },
                    "type": {
                        "type": "string",
                        "minLength": 1
                    },
                    "typeVersion": {
                        "type": ["integer", "number"]
                    },
                    "parameters": {
                        "type": "object"
                    },
                    "trigger": {
                        "type": "boolean"
                    },
                    "credentials": {
                        "type": "object"
                    }
                },
                "additionalProperties": True
            }
        },

        "connections": {
            "type": "object",

            # Top-level keys: source node names
            "patternProperties": {
                "^.+$": {
                    "type": "object",

                    # Inner keys: stream types ("main", "ai_languageModel", ...)
                    "patternProperties": {
                        "^.+$": {
                            "type": "array",
                            # One entry per output port. Either a list of hops,
                            # a single hop object, or null for an unused port.
                            "items": {
                                "anyOf": [
                                    {"type": "array", "items": _HOP},
                                    _HOP,
                                    {"type": "null"}
                                ]
                            }
                        }
                    },
                    "additionalProperties": False
                }
            },
            "additionalProperties": False
        },

        # Simplified bench format
        "edges": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["source", "target"],
                "properties": {
                    "source": {"type": ["string", "number"]},
                    "target": {"type": ["string", "number"]},
                    "sourcePort": {"type": "integer", "minimum": 0},
                    "targetPort": {"type": "integer", "minimum": 0},
                    "type": {"type": "string", "minLength": 1}
                },
                "additionalProperties": True
            }
        }
    }
}


REGISTRY_SCHEMA = {
    "type": "object",
    "required": ["types"],
    "properties": {
        # When true the file replaces the built-in table instead of extending it
        "replace": {"type": "boolean"},
        "types": {
            "type": "object",
            "patternProperties": {
                "^.+$": {
                    "type": "object",
                    "properties": {
                        "outputs": {"type": "integer", "minimum": 0},
                        "required": {
                            "type": "array",
                            "items": {"type": "string", "minLength": 1},
                            "uniqueItems": True
                        },
                        "trigger": {"type": "boolean"},
                        "terminal": {"type": "boolean"},
                        # parameters holding source code, never scanned as expressions
                        "code_fields": {
                            "type": "array",
                            "items": {"type": "string", "minLength": 1},
                            "uniqueItems": True
                        }
                    },
                    "additionalProperties": False
                }
            },
            "additionalProperties": False
        }
    },
    "additionalProperties": False
}
