import textwrap
from typing import Optional

from solshell.config import ShellConfig
from solshell.session import Session
from solshell.statement import Scope, Statement

SPDX_HEADER = "// SPDX-License-Identifier: GPL-2.0-or-later"


def governing_version_pragma(session: Session) -> Optional[Statement]:
    """The most recent `pragma solidity` statement, if there is one."""
    pragmas = session.by_scope(Scope.VERSION_PRAGMA)
    if not pragmas:
        return None
    return pragmas[-1]


class TemplateSynthesizer:
    """
    Renders a session into one standalone contract:

        // SPDX-License-Identifier: ...
        pragma solidity <version>;

        <source unit statements>

        contract <name> {

            <contract statements>

            function <main>() public returns (<type>) {
                <main statements>
                return <tail expression>;
            }
        }

    Settings are read on every render so that changing the configuration
    takes effect on the next statement.
    """

    def __init__(self, config: ShellConfig):
        self.config = config

    def version_pragma_line(self, session: Session) -> Optional[str]:
        stmt = governing_version_pragma(session)
        if stmt is not None:
            return stmt.raw_text
        default = self.config.installed_solidity_version
        if default is None:
            return None
        return f"pragma solidity {default};"

    def render(self, session: Session) -> str:
        prologue = session.by_scope(Scope.SOURCE_UNIT)
        contract_state = session.by_scope(Scope.CONTRACT)
        main_statements = session.by_scope(Scope.MAIN)

        last = session.last
        if last is None or last.scope is not Scope.MAIN or last.has_no_return_value:
            body = main_statements
            return_expression, return_type = ";", ""
        else:
            body = main_statements[:-1]
            return_expression, return_type = last.return_expression, last.return_type

        returns = f" returns ({return_type})" if return_type else ""
        if return_expression == ";":
            return_line = "return;"
        else:
            return_line = f"return {return_expression}"

        header = [SPDX_HEADER]
        pragma = self.version_pragma_line(session)
        if pragma is not None:
            header.append(pragma)

        name = self.config.template_contract_name
        func = self.config.template_func_main
        body_lines = [s.raw_text for s in body] + [return_line]

        parts = ["\n".join(header)]
        if prologue:
            parts.append("\n\n".join(s.raw_text for s in prologue))
        contract = [f"contract {name} {{"]
        if contract_state:
            members = "\n\n".join(s.raw_text for s in contract_state)
            contract.append(textwrap.indent(members, " " * 4))
            contract.append("")
        contract.append(f"    function {func}() public{returns} {{")
        contract.append(textwrap.indent("\n".join(body_lines), " " * 8))
        contract.append("    }")
        contract.append("}")
        parts.append("\n".join(contract))

        return "\n\n".join(parts) + "\n"
