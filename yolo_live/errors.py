"""
Error types raised by the detection pipeline.

An empty frame is never an error: it is reported through
`DetectorListener.on_empty_detect`.
"""


class DetectorError(RuntimeError):
    """Base class for pipeline failures."""


class SetupError(DetectorError):
    """
    The pipeline cannot run: no execution mode could load the model, the model
    declares an unsupported shape, or the label table does not match it.
    """


class DecodeInconsistency(DetectorError):
    """A decoded class index falls outside the label table."""

    def __init__(self, class_index: int, num_labels: int):
        super().__init__(
            f"Class index {class_index} is outside the label table ({num_labels} labels). "
            "The label file does not match the model."
        )
        self.class_index = class_index
        self.num_labels = num_labels
