from PyQt6.QtWidgets import QApplication, QMessageBox, QStyle


def silent_message(parent, level, title, text):
    match level:
        case "info":
            icon = QStyle.StandardPixmap.SP_MessageBoxInformation
        case "warn":
            icon = QStyle.StandardPixmap.SP_MessageBoxWarning
        case "critical":
            icon = QStyle.StandardPixmap.SP_MessageBoxCritical
        case "question":
            icon = QStyle.StandardPixmap.SP_MessageBoxQuestion
        case _:
            raise ValueError("Function silent_message gets unsupported level.")
    icon_message(parent, title, text, icon)


def icon_message(parent, title, text, icon=None):
    size = QApplication.style().pixelMetric(QStyle.PixelMetric.PM_MessageBoxIconSize)
    message = QMessageBox(parent)
    if icon is not None:
        pix = QApplication.style().standardIcon(icon).pixmap(size, size)
        message.setIconPixmap(pix)
    message.setWindowTitle(title)
    message.setText(text)
    message.exec()
