class OS:
    def boot(self) -> None:
        print("OS is booting...")


class Laptop:
    def __init__(self, os: OS):
        self.os = os

    def build(self) -> None:
        print("Laptop is being built...")
        self.os.boot()
