import progressbar


class ProgressbarSingleton:

    pbar: progressbar.ProgressBar

    def __new__(cls) -> 'ProgressbarSingleton':
        if not hasattr(cls, 'instance'):
            cls.instance = super(ProgressbarSingleton, cls).__new__(cls)
        return cls.instance

    def create(self, decode_type: str) -> None:
        pbar_widgets: list = ['%s Decode: ' % decode_type, progressbar.Percentage(), ' ', progressbar.Bar(
            marker=progressbar.RotatingMarker()), ' ', progressbar.ETA(), progressbar.FormatLabel(' Errors:0')]
        self.pbar = progressbar.ProgressBar(
            widgets=pbar_widgets, max_value=100).start()

    def update(self, items_failed: int, items_total: int, items_completed: int) -> None:
        self.pbar.widgets[6] = progressbar.FormatLabel(
            ' Errors:%s' % items_failed)
        if items_total:
            self.pbar.update(items_completed * 100.0 / items_total)

    def finish(self) -> None:
        self.pbar.finish()
