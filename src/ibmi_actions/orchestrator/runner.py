"""Multi-target Action runner.

Provides the ActionRunner that resolves an Action, deploys workspaces,
derives each target's variables, prompts for inputs, dispatches the
command, fetches diagnostics and downloads results -- one target at a time,
since all targets share one stateful remote session.
"""

from __future__ import annotations

import asyncio
import logging
import posixpath
import shutil
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path

from ibmi_actions.diagnostics.extractor import DiagnosticCollection, DiagnosticsExtractor
from ibmi_actions.engine.context import (
    derive_context,
    generic_variables,
    qualify_path,
)
from ibmi_actions.engine.dispatch import Dispatcher, get_object_from_command
from ibmi_actions.engine.prompts import PromptExpander
from ibmi_actions.engine.variables import Variables
from ibmi_actions.exceptions import (
    ActionCancelledError,
    ActionsError,
    DeployError,
    InvalidPathError,
    NoSuitableActionError,
    NotConnectedError,
    PromptCancelledError,
    TargetTypeError,
)
from ibmi_actions.local.env import env_overrides, get_branch_library_name
from ibmi_actions.local.git import get_git_branch
from ibmi_actions.models.action import Action, ActionType, Environment, RefreshPolicy, Target, Workspace
from ibmi_actions.models.diagnostics import EvfEventInfo
from ibmi_actions.models.results import (
    DID_NOT_RUN,
    RunOutcome,
    RunResult,
    TargetRunState,
    TargetStatus,
)
from ibmi_actions.orchestrator.config import RunnerConfig
from ibmi_actions.protocols import (
    CancellationToken,
    Catalog,
    ConfigStore,
    Deployer,
    ResourceNode,
    Session,
    UsageRanking,
    UserInterface,
)
from ibmi_actions.resolver import ActionResolver, target_type
from ibmi_actions.storage.usage import InMemoryUsageRanking

logger = logging.getLogger(__name__)

OPEN_OUTPUT = "Open output"
EVENT_FILE_MARKER = "*EVENTF"
TEMP_SOURCE_RECORD_LENGTH = 112


class ActionRunner:
    """Runs Actions against targets through a single remote session.

    Whole runs are serialized with an ``asyncio.Lock``; within a run,
    targets are processed strictly in the order given. Cancellation is
    checked before each target only.

    Usage::

        runner = ActionRunner(session, config=store, ui=ui, catalog=catalog)
        result = await runner.run_action([Target.from_uri("member:/LIB1/QRPGLESRC/PGM1.RPGLE")])
        print(result.outcome, result.failure_count)
    """

    def __init__(
        self,
        session: Session | None,
        *,
        config: ConfigStore,
        ui: UserInterface,
        catalog: Catalog | None = None,
        deployer: Deployer | None = None,
        ranking: UsageRanking | None = None,
        diagnostics: DiagnosticsExtractor | None = None,
        runner_config: RunnerConfig | None = None,
        branch_lookup: Callable[[Workspace], str | None] = get_git_branch,
        env_lookup: Callable[[Workspace | None], dict[str, str]] = env_overrides,
    ) -> None:
        self._session = session
        self._config = config
        self._ui = ui
        self._deployer = deployer
        self._ranking = ranking or InMemoryUsageRanking()
        self._runner_config = runner_config or RunnerConfig()
        self._branch_lookup = branch_lookup
        self._env_lookup = env_lookup
        self._resolver = ActionResolver(config, self._ranking, ui)
        self.diagnostics = diagnostics or DiagnosticsExtractor(
            DiagnosticCollection(), config=config, catalog=catalog, ui=ui, deployer=deployer
        )
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def resolver(self) -> ActionResolver:
        return self._resolver

    async def run_action(
        self,
        targets: Sequence[Target],
        action: Action | None = None,
        *,
        node: ResourceNode | None = None,
        cancellation: CancellationToken | None = None,
    ) -> RunResult:
        """Run *action* (or the resolved one) against every target.

        Args:
            targets: Resources to run against, processed in this order.
            action: Skip resolution and run this Action.
            node: Browser node the run was triggered from, used by the
                ``parent`` and ``filter`` refresh policies.
            cancellation: Token checked before each target. When omitted,
                one is obtained from ``ui.show_progress``.

        Returns:
            RunResult with the aggregated outcome and per-target states.
        """
        async with self._lock:
            try:
                return await self._run(list(targets), action, node, cancellation)
            except (NoSuitableActionError, NotConnectedError, TargetTypeError) as e:
                await self._ui.show_message("error", str(e))
                return RunResult(RunOutcome.ABORTED, [TargetRunState(t) for t in targets], action, str(e))

    async def refresh_diagnostics(self, info: EvfEventInfo) -> None:
        """Fetch the server-side event listing for *info* and place it."""
        await self.diagnostics.refresh_from_server(info)

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    async def _run(
        self,
        targets: list[Target],
        action: Action | None,
        node: ResourceNode | None,
        cancellation: CancellationToken | None,
    ) -> RunResult:
        if self._session is None:
            raise NotConnectedError()
        states = [TargetRunState(t) for t in targets]
        if not targets:
            return RunResult(RunOutcome.ABORTED, states, action, "Nothing to run.")

        action_type = target_type(targets)
        if action is not None and action.type is not action_type:
            raise TargetTypeError([action_type.value], action.name)

        chosen = action or await self._resolver.resolve(targets)
        if chosen is None:
            return RunResult(RunOutcome.ABORTED, states, None, "No action selected.")

        token = cancellation or self._ui.show_progress(
            f"Running {chosen.name}", len(targets), cancellable=True
        )
        dispatcher = Dispatcher(
            self._session, log_compile_output=bool(self._config.get("log_compile_output", False))
        )
        expander = PromptExpander(self._ui)
        deploy_directories: dict[Workspace, str] = {}
        logger.info("Running action %s on %d target(s)", chosen.name, len(targets))

        for index, state in enumerate(states):
            if token.cancelled:
                for pending in states[index:]:
                    pending.status = TargetStatus.CANCELLED
                logger.info("Action %s cancelled before target %d", chosen.name, index + 1)
                break

            try:
                cwd = await self._working_directory(chosen, state.target, deploy_directories)
                if self._runner_config.prompt_per_target:
                    expander.reset()
                await self._run_target(chosen, state, index, cwd, dispatcher, expander)
            except (ActionCancelledError, DeployError, PromptCancelledError) as e:
                for pending in states[index:]:
                    if not pending.processed:
                        pending.status = TargetStatus.CANCELLED
                await self._ui.show_message("warning", str(e))
                return RunResult(RunOutcome.ABORTED, states, chosen, str(e))

            if self._runner_config.on_target_done is not None:
                try:
                    self._runner_config.on_target_done(state)
                except Exception:
                    logger.debug("on_target_done callback error", exc_info=True)

        result = self._aggregate(chosen, states)
        if any(s.has_run for s in states):
            self._apply_refresh(chosen, node)
        await self._report(result)
        return result

    async def _working_directory(
        self, action: Action, target: Target, prepared: dict[Workspace, str]
    ) -> str:
        """Remote working directory for *target*, deploying its workspace once."""
        workspace = target.workspace
        if action.type is not ActionType.FILE or workspace is None:
            return self._config.get_home_directory()
        if workspace in prepared:
            return prepared[workspace]
        if self._deployer is None:
            raise DeployError(workspace.name, "no deploy tooling configured")

        if action.deploy_first:
            deployed = await self._deployer.launch_deploy(workspace)
            if not deployed:
                raise ActionCancelledError(action.name)

        directory = self._deployer.get_remote_deploy_directory(workspace)
        if not directory:
            raise DeployError(workspace.name, "no deploy directory setup for this workspace")
        prepared[workspace] = directory
        return directory

    async def _run_target(
        self,
        action: Action,
        state: TargetRunState,
        index: int,
        cwd: str,
        dispatcher: Dispatcher,
        expander: PromptExpander,
    ) -> None:
        target = state.target
        state.log(f"Running Action: {action.name} ({datetime.now().strftime('%H:%M:%S')})")

        try:
            variables, info = self._build_variables(action, target, cwd)
        except InvalidPathError as e:
            state.log(str(e))
            self._finish(state, ok=False)
            return
        state.evf_info = info

        command = await expander.expand(variables.expand(action.command))

        try:
            if variables.get("&FULLPATH") and "&SRCFILE" in action.command and info.object:
                if not await self._copy_to_temp_member(state, dispatcher, variables, info):
                    self._finish(state, ok=False)
                    return

            result = await dispatcher.run(
                command,
                environment=action.environment,
                variables=variables,
                cwd=cwd,
                write=state.log,
            )
        except ActionsError:
            raise
        except Exception as e:
            logger.warning("Action %s failed on %s: %s", action.name, target.uri, e)
            state.log(f"{e}")
            self._finish(state, ok=False)
            return

        state.result = result
        if result.exit_code == DID_NOT_RUN:
            state.log("Command did not run.")
            self._finish(state, ok=False)
            return

        state.has_run = True
        ok = result.ok
        is_ile = action.environment is Environment.ILE

        found = get_object_from_command(result.command) if is_ile else None
        if found is not None:
            library, object_name = found
            info = info.with_object(library or info.library, object_name)
            state.evf_info = info

        post_download = action.post_download or []
        use_local_evfevent = target.workspace is not None and (
            ".evfevent" in post_download or ".evfevent/" in post_download
        )

        try:
            if use_local_evfevent:
                state.log("Fetching errors from .evfevent.")
            elif info.object and info.library:
                if EVENT_FILE_MARKER in action.command and is_ile:
                    state.log(f"Fetching errors for {info.library}/{info.object}.")
                    try:
                        await self.refresh_diagnostics(info)
                    except Exception as e:
                        logger.warning("Could not fetch errors for %s/%s: %s", info.library, info.object, e)
                        state.log(f"Failed to fetch errors: {e}")
                elif action.command.lstrip().upper().startswith("CRT"):
                    state.log(
                        f"{EVENT_FILE_MARKER} not found in command string. "
                        f"Not fetching errors for {info.library}/{info.object}."
                    )

            if action.type is ActionType.FILE and post_download and target.workspace is not None:
                await self._post_download(target.workspace, cwd, post_download)
                state.log(f"Downloaded files as part of Action: {', '.join(post_download)}")
                if use_local_evfevent:
                    await self.diagnostics.refresh_from_local(info)
        except Exception as e:
            logger.warning("Post-processing failed for %s: %s", target.uri, e)
            state.log(f"Failed to download or process results after Action: {e}")
            ok = False

        if action.output_to_file:
            self._write_output(action.output_to_file, variables, state, index)

        self._finish(state, ok=ok)

    # ------------------------------------------------------------------
    # Internal steps
    # ------------------------------------------------------------------

    def _build_variables(self, action: Action, target: Target, cwd: str) -> tuple[Variables, EvfEventInfo]:
        session = self._session
        assert session is not None
        overrides = self._env_lookup(target.workspace)
        current_library = overrides.get("&CURLIB") or self._config.get_current_library()

        branch = None
        if action.type is ActionType.FILE and target.workspace is not None:
            branch = self._branch_lookup(target.workspace)

        context = derive_context(
            action.type,
            target,
            command=action.command,
            current_library=current_library,
            home_directory=self._config.get_home_directory(),
            deploy_directory=cwd,
            branch=branch,
            branch_library=get_branch_library_name(branch) if branch else None,
        )

        variables = generic_variables(
            current_library=current_library,
            library_list=self._config.get_library_list(),
            current_user=session.current_user,
            current_host=session.current_host,
            home_directory=self._config.get_home_directory(),
            custom_variables=[(v.name, v.value) for v in self._config.get_custom_variables()],
            overrides=overrides,
        )
        variables.update(context.variables)
        # .env values win over everything derived
        variables.update(overrides)
        return variables, context.evf_info

    async def _copy_to_temp_member(
        self,
        state: TargetRunState,
        dispatcher: Dispatcher,
        variables: Variables,
        info: EvfEventInfo,
    ) -> bool:
        """Copy the stream file into ``&SRCFILE`` so member-only commands can use it."""
        library, source_file = (variables.get("&SRCFILE") or "").split("/", 1)
        create = f"CRTSRCPF FILE({library}/{source_file}) RCDLEN({TEMP_SOURCE_RECORD_LENGTH})"
        copy = (
            f"CPYFRMSTMF FROMSTMF('{variables.get('&FULLPATH')}') "
            f"TOMBR('{qualify_path(library, source_file, info.object)}') "
            f"MBROPT(*REPLACE) DBFCCSID(*FILE) STMFCCSID(1208)"
        )

        # Usually fails because the source file already exists
        await dispatcher.run(create, environment=Environment.ILE, variables=variables, no_library_list=True)

        result = await dispatcher.run(copy, environment=Environment.ILE, variables=variables, no_library_list=True)
        if not result.ok:
            state.log(f"Failed to copy file to a temporary member.\n\t{result.stderr}")
            return False
        return True

    async def _post_download(self, workspace: Workspace, cwd: str, downloads: list[str]) -> None:
        session = self._session
        assert session is not None
        planned: list[tuple[Path, str, bool]] = []
        directories: list[Path] = []

        for item in downloads:
            remote = posixpath.join(cwd, item)
            local = Path(workspace.path) / item
            is_directory = await session.is_directory(remote)
            if is_directory:
                directories.append(local)
            else:
                parent = posixpath.dirname(item.rstrip("/"))
                if parent:
                    directories.append(Path(workspace.path) / parent)
            planned.append((local, remote, is_directory))

        for directory in dict.fromkeys(directories):
            if directory.is_dir():
                shutil.rmtree(directory)
            elif directory.exists():
                directory.unlink()
            directory.mkdir(parents=True, exist_ok=True)

        for local, remote, is_directory in planned:
            if is_directory:
                await session.download_directory(local, remote)
            else:
                await session.download_file(local, remote)

    def _write_output(self, template: str, variables: Variables, state: TargetRunState, index: int) -> None:
        name = variables.expand(template).replace("&i", str(index))
        path = Path(name).expanduser()
        if not path.is_absolute() and state.target.workspace is not None:
            path = Path(state.target.workspace.path) / path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(state.output, encoding="utf-8")
        except OSError as e:
            logger.warning("Could not write action output to %s: %s", path, e)

    @staticmethod
    def _finish(state: TargetRunState, *, ok: bool) -> None:
        state.processed = True
        state.execution_ok = ok
        state.status = TargetStatus.DONE if ok else TargetStatus.FAILED

    # ------------------------------------------------------------------
    # Aggregation and reporting
    # ------------------------------------------------------------------

    def _aggregate(self, action: Action, states: list[TargetRunState]) -> RunResult:
        processed = [s for s in states if s.processed]
        if any(s.status is TargetStatus.CANCELLED for s in states):
            outcome = RunOutcome.CANCELLED
            message = f"Action {action.name} was cancelled."
        elif processed and all(s.execution_ok for s in processed):
            outcome = RunOutcome.SUCCESSFUL
            message = f"Action {action.name} was successful."
        else:
            outcome = RunOutcome.PARTIALLY_FAILED
            message = f"Action {action.name} was not successful."
        return RunResult(outcome, states, action, message)

    def _apply_refresh(self, action: Action, node: ResourceNode | None) -> None:
        match action.refresh:
            case RefreshPolicy.PARENT:
                if node is not None and node.parent is not None:
                    node.parent.refresh()
            case RefreshPolicy.FILTER:
                if node is not None:
                    root = node
                    while root.parent is not None:
                        root = root.parent
                    root.refresh()
            case RefreshPolicy.BROWSER:
                self._ui.invalidate("browser")
            case _:
                pass

    async def _report(self, result: RunResult) -> None:
        level = "info" if result.outcome is RunOutcome.SUCCESSFUL else "error"
        if result.outcome is RunOutcome.CANCELLED:
            level = "warning"
        choices = (OPEN_OUTPUT,) if self._runner_config.show_output_action else ()
        answer = await self._ui.show_message(level, result.message, *choices)
        if answer == OPEN_OUTPUT:
            self._ui.show_output(result.output)
