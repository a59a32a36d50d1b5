from typing import Callable, List, Mapping, Optional, Sequence

from bundleconverge.shell import ExecutionResult

GEM_ENVIRONMENT = """\
RubyGems Environment:
  - RUBYGEMS VERSION: 3.4.10
  - RUBY VERSION: 3.2.2 (2023-03-30 patchlevel 53) [x86_64-linux]
  - INSTALLATION DIRECTORY: /usr/local/lib/ruby/gems/3.2.0
  - USER INSTALLATION DIRECTORY: /root/.local/share/gem/ruby/3.2.0
  - RUBY EXECUTABLE: /usr/local/bin/ruby
  - GIT EXECUTABLE: /usr/bin/git
  - EXECUTABLE DIRECTORY: /usr/local/bin
  - SPEC CACHE DIRECTORY: /root/.local/share/gem/specs
  - RUBYGEMS PLATFORMS:
     - ruby
     - x86_64-linux
"""

BUNDLE_INSTALL_CHANGED = """\
Fetching gem metadata from https://rubygems.org/.
Resolving dependencies...
Fetching rake 13.0.1
Installing rake 13.0.1
Bundle complete! 1 Gemfile dependency, 2 gems now installed.
"""

BUNDLE_INSTALL_UNCHANGED = """\
Using rake 13.0.1
Using bundler 2.4.22
Bundle complete! 1 Gemfile dependency, 2 gems now installed.
"""


def result(argv, returncode=0, stdout="", stderr=""):
    return ExecutionResult(" ".join(argv), returncode, stdout, stderr)


class Call:
    def __init__(self, argv, env, user, timeout):
        self.argv = list(argv)
        self.env = dict(env or {})
        self.user = user
        self.timeout = timeout


class FakeExecute:
    """
    Stands in for bundleconverge.shell.execute, recording each call.
    ``responder`` maps an argv to an ExecutionResult.
    """

    def __init__(self, responder: Callable[[List[str]], ExecutionResult]):
        self.responder = responder
        self.calls: List[Call] = []

    def __call__(
        self,
        argv: Sequence[str],
        env: Optional[Mapping[str, Optional[str]]] = None,
        user: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ExecutionResult:
        self.calls.append(Call(argv, env, user, timeout))
        return self.responder(list(argv))

    def commands(self, binary: Optional[str] = None) -> List[List[str]]:
        return [c.argv for c in self.calls if binary is None or c.argv[0] == binary]


def gem_and_bundle(
    bundle_stdout=BUNDLE_INSTALL_UNCHANGED,
    bundle_returncode=0,
    bundle_stderr="",
    bundler_installed=True,
    gem_environment=GEM_ENVIRONMENT,
):
    "A responder that behaves like a working gem and bundle installation."

    def respond(argv):
        if argv[0].endswith("/bundle"):
            return result(argv, bundle_returncode, bundle_stdout, bundle_stderr)
        subcommand = argv[1]
        if subcommand == "environment":
            return result(argv, 0, gem_environment)
        if subcommand == "list":
            return result(
                argv,
                0 if bundler_installed else 1,
                "true\n" if bundler_installed else "false\n",
            )
        if subcommand in ("install", "update"):
            return result(
                argv, 0, "Successfully installed bundler-2.4.22\n1 gem installed\n"
            )
        raise AssertionError(f"unexpected command {argv}")

    return respond
