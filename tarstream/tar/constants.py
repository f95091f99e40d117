"""Field layout and magic values of tar header blocks"""

blockSize = 512

nameOffset, nameLength = 0, 100
modeOffset, modeLength = 100, 8
uidOffset, uidLength = 108, 8
gidOffset, gidLength = 116, 8
sizeOffset, sizeLength = 124, 12
mtimeOffset, mtimeLength = 136, 12
chksumOffset, chksumLength = 148, 8
typeflagOffset = 156
linknameOffset, linknameLength = 157, 100
magicOffset, magicLength = 257, 6
versionOffset, versionLength = 263, 2
gnuMagicLength = 8
unameOffset, unameLength = 265, 32
gnameOffset, gnameLength = 297, 32
devmajorOffset, devmajorLength = 329, 8
devminorOffset, devminorLength = 337, 8
prefixOffset, prefixLength = 345, 155

# GNU reuses the prefix area
gnuAtimeOffset, gnuAtimeLength = 345, 12
gnuCtimeOffset, gnuCtimeLength = 357, 12
gnuSparseOffset = 386
gnuSparseSlots = 4
gnuIsExtendedOffset = 482
gnuRealSizeOffset, gnuRealSizeLength = 483, 12
gnuSparseExtSlots = 21
gnuSparseExtIsExtendedOffset = 504

# Schily star layout
schilyPrefixLength = 131
schilyAtimeOffset = 476
schilyCtimeOffset = 488
schilyXmagicOffset, schilyXmagicLength = 508, 4
schilyXmagic = 'tar'

ustarMagic = 'ustar'
ustarVersion = '00'
gnuMagic = 'ustar  '

typeRegular = '0'
typeRegularOld = '\0'
typeHardLink = '1'
typeSymLink = '2'
typeCharDevice = '3'
typeBlockDevice = '4'
typeDirectory = '5'
typeFifo = '6'
typeContiguous = '7'
typePaxHeader = 'x'
typePaxGlobal = 'g'
typeGnuDumpDir = 'D'
typeGnuLongLink = 'K'
typeGnuLongName = 'L'
typeGnuMultiVolume = 'M'
typeGnuSparse = 'S'
typeGnuVolumeHeader = 'V'
typeSolarisHeader = 'X'
typeSchilyInode = 'I'

regularTypes = (typeRegular, typeRegularOld, typeContiguous)
payloadlessTypes = (typeHardLink, typeSymLink, typeDirectory, typeCharDevice, typeBlockDevice, typeSchilyInode)
zeroSizeWriteTypes = (typeCharDevice, typeBlockDevice, typeDirectory, typeFifo)
v7Types = (typeRegular, typeRegularOld, typeHardLink, typeSymLink)

maxOctal7 = 0o7777777
maxOctal11 = 0o77777777777
maxMode = 0o7777

longLinkName = '././@LongLink'
paxHeaderDir = 'PaxHeaders.0'
extensionMode = 0o444
extensionOwner = 'root'
