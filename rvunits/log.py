import logging


def getLogger():
    logger = logging.getLogger('rvunits')
    logger.setLevel(logging.INFO)

    logging.disable()

    formatter = logging.Formatter('%(name)15s: %(message)s')
    file_handler = logging.FileHandler("run.log", 'w', delay=True)
    file_handler.setFormatter(formatter)

    logger.addHandler(file_handler)

    return logger


logger = getLogger()
