"""In-process tools backed by plain Python callables."""

from __future__ import annotations

import asyncio
import inspect
import json
from typing import Any, Callable, Dict, Optional, Type, cast

import jsonref  # type: ignore
from pydantic import BaseModel, ValidationError, create_model

from ..exceptions import ToolValidationError
from ..logger import get_logger
from .models import RunContext, ToolResult
from .schema import SchemaValidator, ToolParameterFactory

logger = get_logger(__name__)


class FunctionTool:
    """Adapts a sync or async function to the tool capability interface.

    The parameter schema is derived from the function signature unless an
    explicit JSON schema is supplied. A parameter named ``context`` receives the
    current RunContext and is hidden from the model.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.func = func
        self.name = name or func.__name__
        self.args_model: Optional[Type[BaseModel]] = None

        signature = inspect.signature(func, eval_str=True)
        self._wants_context = "context" in signature.parameters

        if parameters is None:
            if description is None:
                description = self._get_docstring_from_func(func, self.name)
            self.args_model, parameters = self._build_schema(signature, self.name)
        elif description is None:
            raise ToolValidationError(f"Tool '{self.name}' needs a description when parameters are given.")

        self.description = description
        self.parameters = parameters

    async def execute(self, args: Any, context: RunContext) -> ToolResult:
        kwargs = self._normalize_args(args)

        if self.args_model is not None:
            try:
                validated = self.args_model(**kwargs)
            except ValidationError as exc:
                raise ToolValidationError(f"Argument validation failed for '{self.name}': {exc}") from exc
            kwargs = {field: getattr(validated, field) for field in self.args_model.model_fields}

        if self._wants_context:
            kwargs["context"] = context

        logger.debug("Calling function tool '%s' with %s", self.name, list(kwargs))
        if inspect.iscoroutinefunction(self.func):
            result = await self.func(**kwargs)
        else:
            result = await asyncio.to_thread(self.func, **kwargs)

        if isinstance(result, ToolResult):
            return result
        return ToolResult.success(self._stringify(result))

    def _normalize_args(self, args: Any) -> Dict[str, Any]:
        if args is None or args == "":
            return {}
        if isinstance(args, dict):
            return dict(args)
        raise ToolValidationError(f"Arguments for tool '{self.name}' must be a JSON object, got {type(args).__name__}.")

    @staticmethod
    def _stringify(result: Any) -> str:
        if result is None:
            return "Success"
        if isinstance(result, str):
            return result
        if isinstance(result, BaseModel):
            return result.model_dump_json()
        if isinstance(result, (dict, list)):
            return json.dumps(result, default=str)
        return str(result)

    @staticmethod
    def _build_schema(signature: inspect.Signature, tool_name: str) -> tuple[Type[BaseModel], Dict[str, Any]]:
        fields = ToolParameterFactory.build_fields(signature, tool_name)

        # create_model expects **field_definitions: Any
        args_model = create_model(f"{tool_name}Params", **cast(Dict[str, Any], fields))
        raw_schema = args_model.model_json_schema()
        SchemaValidator.assert_no_recursive_refs(raw_schema)

        # proxies=False ensures we get a plain dict back, not JsonRef objects
        parameters_schema = jsonref.replace_refs(raw_schema, proxies=False)
        return args_model, SchemaValidator.sanitize_schema(parameters_schema)

    @staticmethod
    def _get_docstring_from_func(func: Callable, tool_name: str) -> str:
        doc = inspect.getdoc(func)
        if not doc:
            msg = f"Tool '{tool_name}' missing docstring. LLMs need a description of what the tool does."
            logger.error(msg)
            raise ToolValidationError(msg)
        return doc
