from __future__ import annotations

import copy
import json
import time
from typing import Any, Callable, Dict, List, Optional

from agents.llm.base_llm import BaseLLM
from agents.models import AgentDefinition, AgentToolConfig, ReasoningContext, ReasoningMode
from agents.reasoner.base import BaseReasoner, CancellationToken
from agents.reasoner.exceptions import RunCancelledError
from agents.reasoner.models import ReasoningResult, ThinkingStep, ToolInvocationRecord
from agents.reasoner.parser import Respond, UseTool, parse
from agents.reasoner.prompts import load_prompts
from agents.reasoner.usage import UsageAccumulator
from agents.tools.executor import ToolExecutor
from utils.logger import get_logger

logger = get_logger(__name__)

_PROMPTS = load_prompts("tool_loop", required_keys=["chat", "task", "protocol", "fallback"])
FALLBACK_MESSAGE = _PROMPTS["fallback"]
API_CALLER = "api_caller"


def build_system_prompt(system_prompt: str, dynamic_context: Dict[str, Any] | None) -> str:
    """Agent system prompt plus an "Additional Context" block with one ``key: <json>`` line per entry."""
    if not dynamic_context:
        return system_prompt
    lines = "\n".join(
        f"{key}: {json.dumps(value, default=str, ensure_ascii=False)}" for key, value in dynamic_context.items()
    )
    return f"{system_prompt}\n\nAdditional Context:\n{lines}"


def agent_tool_config(
    agent: AgentDefinition,
    tool_name: str,
    runtime: Dict[str, Any] | None = None,
) -> Dict[str, Any]:
    """Per-invocation config for *tool_name*: the agent's declared parameters plus run-scoped keys.

    Keys the agent sets explicitly are never overwritten.
    """
    declared = agent.get_tool(tool_name)
    config: Dict[str, Any] = copy.deepcopy(declared.parameters) if declared else {}

    summarization = config.get("summarization")
    if isinstance(summarization, dict) and summarization.get("enabled") and agent.api_key:
        config.setdefault("_agent_api_key", {"key": agent.api_key, "model": agent.llm_settings.model})

    scoped = {
        "organization_id": agent.organization_id,
        "project_id": agent.project_id,
        "_agent_api_key_id": agent.id,
        "agent_id": agent.id,
        **(runtime or {}),
    }
    for key, value in scoped.items():
        if value is not None:
            config.setdefault(key, value)
    return config


class ToolLoopReasoner(BaseReasoner):
    """Bounded prompt → parse → dispatch loop. Every in-loop failure is recorded in the trace, never raised."""

    DEFAULT_MAX_TOOL_CALLS = 5

    def __init__(
        self,
        *,
        llm: BaseLLM,
        executor: ToolExecutor,
        agent: AgentDefinition,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(llm=llm, executor=executor)
        self.agent = agent
        self._clock = clock

    def run(
        self,
        context: ReasoningContext,
        *,
        dynamic_context: Dict[str, Any] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> ReasoningResult:
        max_calls = context.max_tool_calls or self.DEFAULT_MAX_TOOL_CALLS
        logger.info("tool_loop_started", agent_id=self.agent.id, mode=context.mode.value, max_tool_calls=max_calls)

        steps: List[ThinkingStep] = [self._opening_step(context)]
        tools_used: List[ToolInvocationRecord] = []
        usage = UsageAccumulator()
        system_prompt = build_system_prompt(context.system_prompt, dynamic_context)
        started = self._clock()
        final_text: Optional[str] = None
        iterations = 0
        stopped_early = False

        try:
            for iteration in range(1, max_calls + 1):
                self._check_limits(cancellation, usage, started)
                iterations = iteration

                prompt = self._build_prompt(context, steps, tools_used, iteration)
                try:
                    response = self.llm.complete(
                        prompt,
                        model=self.agent.llm_settings.model,
                        parameters=self.agent.llm_settings.parameters,
                        system_prompt=system_prompt,
                    )
                except Exception as exc:
                    logger.error("llm_call_failed", agent_id=self.agent.id, iteration=iteration, error=str(exc), exc_info=True)
                    steps.append(ThinkingStep(step="continue_reasoning", reasoning=f"Language model call failed: {exc}"))
                    continue

                usage.add(response)
                action = parse(response.text)

                if isinstance(action, UseTool):
                    steps.append(ThinkingStep(step="tool_execution", reasoning=f"Decided to use tool: {action.tool_name}"))
                    self._check_limits(cancellation, usage, started)
                    tools_used.append(self._invoke(action, context, steps))
                    continue

                if isinstance(action, Respond):
                    steps.append(
                        ThinkingStep(step="final_response", reasoning="Determined sufficient information to respond to user")
                    )
                    final_text = action.text or None
                    break

                steps.append(ThinkingStep(step="continue_reasoning", reasoning=action.reasoning or "Continuing analysis"))
        except RunCancelledError as exc:
            stopped_early = True
            steps.append(ThinkingStep(step=exc.step, reasoning=str(exc)))

        success = final_text is not None
        if not success:
            if not stopped_early and iterations >= max_calls:
                steps.append(
                    ThinkingStep(step="max_iterations_reached", reasoning=f"Stopped after {max_calls} iteration(s) without a final response")
                )
                logger.warning("max_iterations_reached", agent_id=self.agent.id, max_tool_calls=max_calls)
            final_text = FALLBACK_MESSAGE

        totals = usage.totals
        logger.info(
            "tool_loop_finished",
            agent_id=self.agent.id,
            success=success,
            iterations=iterations,
            tools_used=len(tools_used),
            total_tokens=totals.total_tokens,
            cost=totals.cost,
        )
        return ReasoningResult(
            final_answer=final_text,
            thinking_process=steps,
            tools_used=tools_used,
            token_usage=totals,
            iterations=iterations,
            success=success,
        )

    def _invoke(self, action: UseTool, context: ReasoningContext, steps: List[ThinkingStep]) -> ToolInvocationRecord:
        config = agent_tool_config(self.agent, action.tool_name, context.runtime_config)
        result = self.executor.execute(action.tool_name, action.parameters, config)
        if not result.success:
            steps.append(ThinkingStep(step="tool_failed", reasoning=f"Tool {action.tool_name} failed: {result.error}"))
        return ToolInvocationRecord(
            tool_name=action.tool_name,
            parameters=action.parameters,
            success=result.success,
            result=result.result if result.success else None,
            error=result.error,
            execution_time_ms=result.execution_time_ms,
        )

    def _check_limits(self, cancellation: CancellationToken | None, usage: UsageAccumulator, started: float) -> None:
        if cancellation is not None and cancellation.cancelled:
            raise RunCancelledError(cancellation.reason or "Run cancelled by caller")

        limits = self.agent.config
        if limits.max_cost is not None and usage.cost >= limits.max_cost:
            raise RunCancelledError(f"Cost limit of {limits.max_cost} reached ({usage.cost:.6f} spent)")
        if limits.max_duration_seconds is not None and self._clock() - started >= limits.max_duration_seconds:
            raise RunCancelledError(f"Time limit of {limits.max_duration_seconds}s reached")

    @staticmethod
    def _opening_step(context: ReasoningContext) -> ThinkingStep:
        if context.mode == ReasoningMode.TASK:
            return ThinkingStep(step="analyze_task", reasoning="Analyzing task input and determining execution strategy")
        return ThinkingStep(step="analyze_input", reasoning="Analyzing user input and determining response strategy")

    def _build_prompt(
        self,
        context: ReasoningContext,
        steps: List[ThinkingStep],
        tools_used: List[ToolInvocationRecord],
        iteration: int,
    ) -> str:
        sections = {
            "tools": self._format_tools(context),
            "thinking": "\n".join(f"{s.step}: {s.reasoning}" for s in steps),
            "tools_used": "\n".join(self._format_record(r) for r in tools_used) or "None",
            "iteration": iteration,
            "protocol": _PROMPTS["protocol"],
        }
        if context.mode == ReasoningMode.TASK:
            task_input = json.dumps(context.task_input, default=str, ensure_ascii=False)
            return _PROMPTS["task"].format(task_input=task_input, **sections)
        history = "\n".join(f"{m.role}: {m.content}" for m in context.history)
        return _PROMPTS["chat"].format(history=history, **sections)

    def _describe(self, tool: AgentToolConfig) -> str:
        if tool.description:
            return tool.description
        # agents may declare a tool by name only; use the registered handler's description
        handler = self.executor.registry.get(tool.name)
        return handler.description if handler is not None else ""

    def _format_tools(self, context: ReasoningContext) -> str:
        lines = []
        for tool in context.tools:
            line = f"- {tool.name}: {self._describe(tool)}"
            endpoints = tool.parameters.get("endpoints") if tool.name == API_CALLER else None
            if isinstance(endpoints, dict) and endpoints:
                line += f"\n  Available endpoints: {', '.join(endpoints)}"
            lines.append(line)
        return "\n".join(lines) or "None"

    @staticmethod
    def _format_record(record: ToolInvocationRecord) -> str:
        if record.success:
            return f"- {record.tool_name}: SUCCESS - {json.dumps(record.result, default=str, ensure_ascii=False)}"
        return f"- {record.tool_name}: FAILED - {record.error}"
