from fcrepo.cli.context import FcrepoContext


class BaseCommand:
    def __init__(self, context: FcrepoContext = None):
        self.context = context

    @property
    def repo(self):
        return self.context.repo
